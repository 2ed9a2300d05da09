"""
Image Validator

Checks profile pictures and logos before they are handed to the compiler. Typst aborts
the whole document on an undecodable image, so a bad upload is detected here and the
image skipped instead.
"""

from pathlib import Path

from cvenom.contexts.rendering.exceptions import ImageErrorType, ImageValidationFailed

MAX_IMAGE_BYTES = 10 * 1024 * 1024

PNG_SIGNATURE = bytes([0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A])
JPEG_SIGNATURE = bytes([0xFF, 0xD8, 0xFF])
HEADER_LENGTH = len(PNG_SIGNATURE)

PNG_EXTENSIONS = (".png",)
JPEG_EXTENSIONS = (".jpg", ".jpeg")
SUPPORTED_EXTENSIONS = PNG_EXTENSIONS + JPEG_EXTENSIONS

REUPLOAD_HINT = "Check file permissions or try re-uploading the image"


def _fail(path: Path, error_type: ImageErrorType, message: str, suggestion: str):
    return ImageValidationFailed(path, error_type, message, suggestion)


def _check_png(path: Path, header: bytes) -> None:
    if header.startswith(PNG_SIGNATURE):
        return
    if header.startswith(JPEG_SIGNATURE):
        raise _fail(
            path,
            ImageErrorType.WRONG_FORMAT,
            "File is JPEG but has .png extension",
            "Rename the file to .jpg or convert it to PNG",
        )
    raise _fail(
        path,
        ImageErrorType.CORRUPTED,
        "Invalid PNG file - corrupted or wrong format",
        "Upload a valid PNG image",
    )


def _check_jpeg(path: Path, header: bytes) -> None:
    if header.startswith(JPEG_SIGNATURE):
        return
    if header.startswith(PNG_SIGNATURE):
        raise _fail(
            path,
            ImageErrorType.WRONG_FORMAT,
            "File is PNG but has .jpg/.jpeg extension",
            "Rename the file to .png or convert it to JPEG",
        )
    raise _fail(
        path,
        ImageErrorType.CORRUPTED,
        "Invalid JPEG file - corrupted or wrong format",
        "Upload a valid JPEG image",
    )


def validate_image(path: Path, required: bool = False) -> bool:
    """
    Validate an image file by size and magic bytes against its extension.

    Args:
        path: Image to check
        required: Treat a missing file as an error instead of "no image"

    Returns:
        True if the image exists and is valid, False if it is absent (and optional)

    Raises:
        ImageValidationFailed: If the image is present but unusable (or missing and required)
    """
    path = Path(path)
    if not path.exists():
        if required:
            raise _fail(
                path, ImageErrorType.NOT_FOUND, "Image file not found", "Upload the image again"
            )
        return False

    try:
        size = path.stat().st_size
    except OSError:
        raise _fail(
            path, ImageErrorType.UNREADABLE, "Cannot read image file metadata", REUPLOAD_HINT
        ) from None

    if size == 0:
        raise _fail(path, ImageErrorType.EMPTY, "Image file is empty", "Upload a valid image file")

    if size > MAX_IMAGE_BYTES:
        raise _fail(
            path,
            ImageErrorType.TOO_LARGE,
            f"Image file too large: {size / 1024 / 1024:.1f}MB (max 10MB)",
            "Resize or compress the image and try again",
        )

    try:
        with open(path, "rb") as f:
            header = f.read(HEADER_LENGTH)
    except OSError as e:
        raise _fail(
            path, ImageErrorType.UNREADABLE, f"Cannot read image file ({e})", REUPLOAD_HINT
        ) from e

    if len(header) < HEADER_LENGTH:
        raise _fail(
            path,
            ImageErrorType.CORRUPTED,
            "Image file too small or corrupted",
            "Upload a valid image file",
        )

    suffix = path.suffix.lower()
    if suffix in PNG_EXTENSIONS:
        _check_png(path, header)
    elif suffix in JPEG_EXTENSIONS:
        _check_jpeg(path, header)
    else:
        raise _fail(
            path,
            ImageErrorType.WRONG_FORMAT,
            "Unsupported image format",
            "Use PNG or JPEG images only",
        )
    return True
