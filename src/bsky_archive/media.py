"""Collect post images and package them with the markdown into a zip.

Zip layout:
    {base_name}.md
    images/image_1.jpg
    images/image_2.png
    ...
"""

import logging
import zipfile
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

import httpx

from .models import Post

logger = logging.getLogger(__name__)

IMAGES_DIR = "images"
MAX_DOWNLOAD_WORKERS = 4


@dataclass(frozen=True)
class ImageRef:
    url: str
    filename: str  # image_{n}{ext}, numbered in post order


def collect_images(posts: Iterable[Post]) -> list[ImageRef]:
    """Number every image in the given posts, in order."""
    images: list[ImageRef] = []
    for post in posts:
        for image in post.images:
            filename = f"image_{len(images) + 1}{guess_extension(image.url)}"
            images.append(ImageRef(url=image.url, filename=filename))
    return images


def guess_extension(url: str) -> str:
    """Guess the file extension from a CDN URL, defaulting to .jpg.

    The Bluesky CDN marks the format with a suffix like "@png" rather than a
    file extension; both forms are recognised.
    """
    for name in ("png", "gif", "webp"):
        if f".{name}" in url or f"@{name}" in url:
            return f".{name}"
    return ".jpg"


def build_image_map(images: Iterable[ImageRef]) -> dict[str, str]:
    """Map each image URL to its relative path inside the archive."""
    return {image.url: f"./{IMAGES_DIR}/{image.filename}" for image in images}


def write_archive_zip(
    markdown: str,
    images: list[ImageRef],
    base_name: str,
    output_dir: Path,
    download: Callable[[str], bytes],
) -> Path:
    """Write {base_name}.zip holding the markdown and downloaded images.

    Images that fail to download are logged and left out of the archive.
    ArchiveTimeoutError from the downloader is not caught: a spent time
    budget aborts the run and no zip is written.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    zip_path = output_dir / f"{base_name}.zip"

    def _fetch(image: ImageRef) -> bytes | None:
        try:
            return download(image.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Failed to download image %s: %s", image.url, e)
            return None

    contents: list[bytes | None] = []
    if images:
        with ThreadPoolExecutor(max_workers=MAX_DOWNLOAD_WORKERS) as pool:
            contents = list(pool.map(_fetch, images))

    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(f"{base_name}.md", markdown)
        for image, data in zip(images, contents):
            if data is not None:
                zf.writestr(f"{IMAGES_DIR}/{image.filename}", data)

    saved = sum(1 for data in contents if data is not None)
    logger.info("Wrote %s with %d/%d images", zip_path, saved, len(images))
    return zip_path
