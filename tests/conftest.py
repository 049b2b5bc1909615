import pytest


@pytest.fixture
def sample_tree(tmp_path):
    """
    Base directory with mixed entries:

        dir10/  dir2/  Dir1/  .git/
        img10.png  img2.png  img1.png  notes.txt  .hidden  big.bin
    """
    for name in ("dir10", "dir2", "Dir1", ".git"):
        (tmp_path / name).mkdir()
    (tmp_path / "dir2" / "inner.txt").write_text("inner")

    (tmp_path / "img10.png").write_bytes(b"x" * 512)
    (tmp_path / "img2.png").write_bytes(b"x" * 1536)
    (tmp_path / "img1.png").write_bytes(b"")
    (tmp_path / "notes.txt").write_text("hello")
    (tmp_path / ".hidden").write_text("secret")
    (tmp_path / "big.bin").write_bytes(b"\0" * (3 << 19))  # 1.5 MB
    return tmp_path
