from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .types import Page

IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".tif", ".tiff"}


@dataclass(frozen=True)
class PageProvider:
    input_path: str

    def iter_pages(self) -> Iterator[Page]:
        """Yield one page per image: the file itself, or each image of a folder in name order.

        Decoding is left to the pipeline so an unreadable photo becomes an
        empty page instead of aborting the job.
        """
        src = Path(self.input_path)
        if src.is_file():
            files = [src]
            base = src.parent
        elif src.is_dir():
            files = sorted(p for p in src.iterdir() if p.suffix.lower() in IMAGE_EXTS)
            base = src
        else:
            raise ValueError(f"--input expects an image file or a folder: {src}")

        for i, img_path in enumerate(files):
            page_num = i + 1
            yield Page(
                page_index=i,
                page_id=f"page_{page_num:03d}",
                source_ref=f"{base.name}/{img_path.name}",
                image_path=str(img_path),
            )
