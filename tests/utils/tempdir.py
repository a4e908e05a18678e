import shutil
import tempfile
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Iterator

TMP_ROOT = Path("tests/tmp")


@contextmanager
def managed_temp_dir(prefix: str, root: Path = TMP_ROOT) -> Iterator[Path]:
    """Scratch directory for SQLite files, journals and screenshots.

    The shared root is removed too once the last test using it is done.
    """
    root.mkdir(parents=True, exist_ok=True)
    tmp_path = Path(tempfile.mkdtemp(prefix=f"{prefix}_", dir=root))
    try:
        yield tmp_path
    finally:
        shutil.rmtree(tmp_path, ignore_errors=True)
        with suppress(OSError):
            root.rmdir()
