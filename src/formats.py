# -*- coding: utf-8 -*-
"""
Podporované formáty a výchozí nastavení pro přejmenování podle data
"""

# PŘÍPONY OBRÁZKŮ - porovnává se vždy malými písmeny
IMAGE_EXTENSIONS = {
    ".jpg", ".jpeg", ".jpe",
    ".png", ".gif", ".bmp", ".webp",
    ".tif", ".tiff",
    ".heic", ".heif",
    # RAW formáty
    ".dng", ".cr2", ".cr3", ".nef", ".arw", ".orf", ".rw2", ".raf",
}

# Soubory začínající tečkou (.DS_Store, ._IMG_0001.jpg) se nikdy nepřejmenují
HIDDEN_PREFIX = "."

# Výsledný název: 2023-12-31_17.32.54.jpg
DEFAULT_DATE_FORMAT = "%Y-%m-%d_%H.%M.%S"

# Formát data uloženého v EXIF
EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"

# EXIF TAGY - v pořadí, v jakém se zkouší
# (ifd, tag): ifd None = hlavní IFD0, 0x8769 = Exif sub-IFD
EXIF_DATE_TAGS = [
    (0x8769, 0x9003),  # DateTimeOriginal
    (0x8769, 0x9004),  # DateTimeDigitized
    (None, 0x0132),    # DateTime
]

# Zdroje data
SOURCE_AUTO = "auto"
SOURCE_EXIF = "exif"
SOURCE_MODIFIED = "modified"
