import os
import tempfile


def write_feed(path: str, xml: str) -> None:
    """
    Write the feed to ``path`` as UTF-8, replacing any previous file.

    The text goes to a temporary file next to the target first and is then
    renamed over it, so readers never see a half-written feed.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(prefix=".feedgrab-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(xml)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
