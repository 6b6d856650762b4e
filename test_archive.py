from __future__ import annotations

import io
import os
import shutil
import tarfile
import unittest

from tarstream import TarReader, TarWriter
from tarstream.constants import BLOCK_SIZE


def _build_sample_archive() -> bytes:
    buf = io.BytesIO()
    writer = TarWriter(buf)
    writer.add_directory("x", 0o755)
    writer.add_file("x/y.txt", 0o644, b"hello")
    writer.add_link("x/z", 0o777, "y.txt")
    writer.finish()
    return buf.getvalue()


class EndToEndTests(unittest.TestCase):
    def test_write_then_read(self):
        reader = TarReader(io.BytesIO(_build_sample_archive()), strict=True)
        seen = []
        for header, contents in reader:
            seen.append(
                (
                    header.path,
                    header.is_directory,
                    header.is_file,
                    header.is_symlink,
                    header.size,
                    header.link_name,
                    contents.read(),
                )
            )
        self.assertEqual(
            seen,
            [
                ("x/", True, False, False, 0, "", b""),
                ("x/y.txt", False, True, False, 5, "", b"hello"),
                ("x/z", False, False, True, 0, "y.txt", b""),
            ],
        )
        self.assertTrue(reader.finished)

    def test_archive_layout(self):
        data = _build_sample_archive()
        # dir header, file header + one data block, link header, end marker
        self.assertEqual(len(data), 4 * BLOCK_SIZE + 2 * BLOCK_SIZE)
        self.assertEqual(data[-2 * BLOCK_SIZE :], bytes(2 * BLOCK_SIZE))

    def test_boundary_sizes_roundtrip(self):
        sizes = [0, 1, 511, 512, 513, 1024, 5000]
        files = {f"data/{n}.bin": os.urandom(n) for n in sizes}
        buf = io.BytesIO()
        with TarWriter(buf) as writer:
            writer.add_directory("data")
            for path, payload in files.items():
                writer.add_file(path, 0o644, payload)
        self.assertEqual(len(buf.getvalue()) % BLOCK_SIZE, 0)

        buf.seek(0)
        reader = TarReader(buf)
        read_back = {}
        for header, contents in reader:
            if header.is_file:
                read_back[header.path] = contents.read()
        self.assertEqual(read_back, files)

    def test_copy_entry_to_file_object(self):
        payload = os.urandom(70_000)
        buf = io.BytesIO()
        with TarWriter(buf) as writer:
            writer.add_file("big.bin", 0o644, payload)
            writer.add_file("after.txt", 0o644, b"after")
        buf.seek(0)
        reader = TarReader(buf)
        sink = io.BytesIO()
        shutil.copyfileobj(reader.file_contents(), sink)
        self.assertEqual(sink.getvalue(), payload)
        reader.advance()
        self.assertEqual(reader.header.path, "after.txt")
        self.assertEqual(reader.file_contents().read(), b"after")

    def test_stdlib_reads_our_archives(self):
        with tarfile.open(fileobj=io.BytesIO(_build_sample_archive()), mode="r:") as tf:
            members = tf.getmembers()
            self.assertEqual([m.name for m in members], ["x", "x/y.txt", "x/z"])
            self.assertTrue(members[0].isdir())
            self.assertTrue(members[1].isfile())
            self.assertEqual(tf.extractfile(members[1]).read(), b"hello")
            self.assertTrue(members[2].issym())
            self.assertEqual(members[2].linkname, "y.txt")
            self.assertEqual(members[1].mode, 0o644)


if __name__ == "__main__":
    unittest.main()
