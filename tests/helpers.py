from pathlib import Path


def write_video(root: Path, name: str, duration: float = 10.0) -> Path:
    """A fake video: a text file holding its duration, which the fake ffprobe prints."""
    p = root / name
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(f"{duration}\n")
    return p


def relative_files(root: Path) -> set[str]:
    return {str(p.relative_to(root)) for p in root.rglob("*") if p.is_file()}
