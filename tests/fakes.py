"""Test doubles for the reader: display surface and archive builders."""

import asyncio
import io
import tarfile

from phracked.errors import PageNotFoundError


class FakeDisplay:
    """Records everything the load pipeline asks the UI to do."""

    def __init__(self, session=None):
        self.session = session
        self.statuses = []
        self.titles = []
        self.cleared = 0
        self.page_counts = []
        self.shown = []

    def clear_status(self):
        self.cleared += 1

    def append_status(self, text):
        self.statuses.append(text)

    def set_title(self, title):
        self.titles.append(title)

    async def rebuild_pages(self, pages):
        self.page_counts.append(pages)

    def show_page(self, name):
        try:
            self.shown.append((name, self.session.read_page(name)))
        except PageNotFoundError:
            self.shown.append((name, None))


class ScriptedChannel:
    """Status channel that stays silent for each None in the script."""

    def __init__(self, script):
        self.script = list(script)

    async def get(self):
        item = self.script.pop(0)
        if item is None:
            await asyncio.sleep(3600)
        return item


def make_tarball(entries, compression="gz") -> bytes:
    """
    Build an archive in memory.

    entries: (name, data, mode) tuples; data None makes a directory,
    a str data makes a symlink to that target.
    """
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode=f"w:{compression}" if compression else "w") as tar:
        for entry in entries:
            name, data = entry[0], entry[1]
            info = tarfile.TarInfo(name)
            if data is None:
                info.type = tarfile.DIRTYPE
                info.mode = entry[2] if len(entry) > 2 else 0o755
                tar.addfile(info)
            elif isinstance(data, str):
                info.type = tarfile.SYMTYPE
                info.linkname = data
                tar.addfile(info)
            else:
                info.size = len(data)
                info.mode = entry[2] if len(entry) > 2 else 0o644
                tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def two_page_issue() -> bytes:
    return make_tarball([
        ("1.txt", b"==Phrack Inc.==\nIntroduction\n"),
        ("2.txt", b"Loopback\n"),
    ])
