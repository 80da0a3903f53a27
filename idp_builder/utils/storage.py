from typing import Iterable

import fsspec


def join_path(*parts: str) -> str:
    return "/".join(p.rstrip("/") for p in parts if p)


def write_records(path: str, records: Iterable[str]) -> int:
    """Write one record per line, creating parent directories as needed."""
    fs, fs_path = fsspec.core.url_to_fs(path)
    parent = fs_path.rsplit("/", 1)[0] if "/" in fs_path else ""
    if parent:
        fs.makedirs(parent, exist_ok=True)
    count = 0
    with fs.open(fs_path, mode="w") as f:
        for record in records:
            f.write(record + "\n")
            count += 1
    return count
