import os
import sys

# Shared fakes live next to the tests
sys.path.insert(0, os.path.dirname(__file__))
