import struct

import pytest

from file_browser.natural_sort import SortKey, derive_key, split_extension


class TestSplitExtension:

    @pytest.mark.parametrize("filename,expected", [
        ("archive.tar.gz", ("archive.tar", ".gz")),
        ("README", ("README", "")),
        ("photo.JPG", ("photo", ".JPG")),
        (".bashrc", ("", ".bashrc")),
        ("trailing.", ("trailing", ".")),
    ])
    def test_last_dot(self, filename, expected):
        assert split_extension(filename) == expected


class TestDeriveKey:

    def test_fields(self):
        key = derive_key("img12.png")
        assert key.prefix == "img"
        assert key.numeric_suffix == 13
        assert key.extension == ".png"

    def test_no_digits_stores_zero(self):
        key = derive_key("notes.txt")
        assert key == SortKey("notes", 0, ".txt")

    def test_digits_only_before_extension_count(self):
        # Digits in the extension are not part of the number
        key = derive_key("video.mp4")
        assert key.prefix == "video"
        assert key.numeric_suffix == 0

    def test_only_trailing_run_is_numeric(self):
        key = derive_key("2024-report7.pdf")
        assert key.prefix == "2024-report"
        assert key.numeric_suffix == 8

    def test_composite_layout(self):
        key = derive_key("a5.b")
        assert key.composite == b"a" + struct.pack(">Q", 6) + b".b"

    def test_natural_order(self):
        assert derive_key("file9.txt") < derive_key("file10.txt") < derive_key("file100.txt")

    def test_no_suffix_before_zero(self):
        assert derive_key("file.txt") < derive_key("file0.txt")

    def test_prefix_compared_first(self):
        assert derive_key("a99.txt") < derive_key("b1.txt")

    def test_leading_zeros_compare_by_value(self):
        assert derive_key("img007.png").numeric_suffix == derive_key("img7.png").numeric_suffix

    def test_overflow_falls_back_to_prefix(self):
        key = derive_key("x" + "9" * 25 + ".dat")
        assert key.prefix == "x"
        assert key.numeric_suffix == 0

    def test_max_uint64_wraps(self):
        key = derive_key("n18446744073709551615")
        assert key.numeric_suffix == 0

    def test_sorting_filenames(self):
        names = ["img10.png", "img2.png", "img1.png", "img.png", "img0.png"]
        assert sorted(names, key=derive_key) == [
            "img.png", "img0.png", "img1.png", "img2.png", "img10.png",
        ]

    def test_non_ascii_names(self):
        # Byte-wise UTF-8 ordering
        assert derive_key("ä1") > derive_key("z1")
        assert derive_key("日記2.txt") < derive_key("日記10.txt")
