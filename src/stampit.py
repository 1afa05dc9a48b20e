#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Přejmenování fotek podle data pořízení.

IMG_1234.jpg -> 2023-12-31_17.32.54.jpg

Datum se bere z EXIF (DateTimeOriginal), a když chybí, z času poslední
změny souboru. Skryté soubory (.DS_Store apod.) se přeskakují.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from PIL import Image
from pillow_heif import register_heif_opener

# Tabulky formátů ze samostatného souboru
from formats import (
    DEFAULT_DATE_FORMAT,
    EXIF_DATE_FORMAT,
    EXIF_DATE_TAGS,
    HIDDEN_PREFIX,
    IMAGE_EXTENSIONS,
    SOURCE_AUTO,
    SOURCE_EXIF,
    SOURCE_MODIFIED,
)

__version__ = "0.2.0"

register_heif_opener()

logger = logging.getLogger(__name__)


# ========================================================================
# DATOVÉ TŘÍDY
# ========================================================================

@dataclass
class RenamePlan:
    source: Path
    target: Path
    timestamp: datetime
    origin: str  # "exif" nebo "modified"

    @property
    def unchanged(self):
        return self.source == self.target


@dataclass
class RenameStats:
    """Souhrn jednoho běhu - co se přejmenovalo, co ne a proč."""
    total: int = 0
    renamed: list = field(default_factory=list)    # [(stará cesta, nová cesta)]
    unchanged: list = field(default_factory=list)  # už mají správný název
    skipped: list = field(default_factory=list)    # bez data
    errors: list = field(default_factory=list)     # [(cesta, text chyby)]

    @property
    def ok(self):
        return not self.errors


# ========================================================================
# VÝBĚR SOUBORŮ
# ========================================================================

def is_hidden(path):
    return Path(path).name.startswith(HIDDEN_PREFIX)


def is_image_file(filename):
    return Path(filename).suffix.lower() in IMAGE_EXTENSIONS


def is_candidate(path, include_all=False):
    """Kandidát = viditelný soubor s příponou obrázku (nebo jakýkoli při include_all)."""
    path = Path(path)
    if is_hidden(path):
        return False
    return include_all or is_image_file(path.name)


def _raise_walk_error(error):
    raise error


def collect_files(path, include_all=False):
    """
    Vrátí seznam souborů k přejmenování.

    Soubor -> jen on sám (pokud je kandidát).
    Složka -> rekurzivně všechno uvnitř, skryté složky se neprocházejí.
    """
    root = Path(path).expanduser()

    if not root.exists():
        raise FileNotFoundError(f"Cesta neexistuje: {root}")

    if root.is_file():
        return [root] if is_candidate(root, include_all) else []

    if not root.is_dir():
        raise NotADirectoryError(f"Cesta není soubor ani složka: {root}")

    files = []
    # nečitelná složka (práva, odpojený disk) ukončí celý běh, nesmí se tiše přeskočit
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        # skryté složky (.git, .thumbnails...) vůbec neprocházet
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(HIDDEN_PREFIX))
        for filename in sorted(filenames):
            file_path = Path(dirpath) / filename
            if is_candidate(file_path, include_all) and file_path.is_file():
                files.append(file_path)
    return files


# ========================================================================
# DATUM
# ========================================================================

def parse_exif_datetime(value):
    """'2023:12:31 17:32:54' -> datetime, nesmysly (0000:00:00 ...) -> None"""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    value = str(value).strip().strip("\x00").strip()
    if not value:
        return None
    try:
        # některé fotoaparáty přidávají zlomky sekund nebo časovou zónu
        return datetime.strptime(value[:19], EXIF_DATE_FORMAT)
    except ValueError:
        logger.debug("Nečitelné EXIF datum: %r", value)
        return None


def exif_datetime(exif):
    """Projde EXIF tagy v pořadí z EXIF_DATE_TAGS a vrátí první platné datum."""
    for ifd, tag in EXIF_DATE_TAGS:
        values = exif if ifd is None else exif.get_ifd(ifd)
        parsed = parse_exif_datetime(values.get(tag))
        if parsed:
            return parsed
    return None


def read_exif_datetime(path):
    try:
        with Image.open(path) as img:
            exif = img.getexif()
    except Exception as e:
        # není obrázek nebo ho Pillow neumí otevřít - to není chyba, jen nemá EXIF
        logger.debug("EXIF nelze načíst z %s: %s", path, e)
        return None
    return exif_datetime(exif)


def read_modified_datetime(path):
    try:
        mtime = Path(path).stat().st_mtime
    except OSError as e:
        logger.debug("Nelze zjistit čas změny %s: %s", path, e)
        return None
    # místní čas, stejně jako ukazuje Finder / ls
    return datetime.fromtimestamp(mtime)


def get_timestamp(path, source=SOURCE_AUTO):
    """
    Vrátí (datetime, původ) nebo None.

    source:
        auto     - EXIF, jinak čas změny
        exif     - jen EXIF
        modified - jen čas změny
    """
    if source not in (SOURCE_AUTO, SOURCE_EXIF, SOURCE_MODIFIED):
        raise ValueError(f"Neznámý zdroj data: {source}")

    if source in (SOURCE_AUTO, SOURCE_EXIF):
        taken = read_exif_datetime(path)
        if taken:
            return taken, SOURCE_EXIF
        if source == SOURCE_EXIF:
            return None

    modified = read_modified_datetime(path)
    if modified:
        return modified, SOURCE_MODIFIED
    return None


# ========================================================================
# NOVÝ NÁZEV
# ========================================================================

def format_stem(timestamp, date_format=DEFAULT_DATE_FORMAT):
    stem = timestamp.strftime(date_format)
    if not stem.strip():
        raise ValueError(f"Formát data '{date_format}' dává prázdný název")
    if os.sep in stem or (os.altsep and os.altsep in stem):
        raise ValueError(f"Formát data '{date_format}' obsahuje oddělovač cesty")
    return stem


def validate_date_format(date_format):
    """Vyzkouší formát nanečisto, ať to spadne dřív, než se cokoli přejmenuje."""
    format_stem(datetime(2000, 1, 2, 3, 4, 5), date_format)


def build_target_name(timestamp, path, date_format=DEFAULT_DATE_FORMAT, counter=0):
    """
    Název souboru: <datum>[-<counter>].<přípona malými písmeny>

    Soubor bez přípony zůstane bez přípony.
    """
    name = format_stem(timestamp, date_format)
    if counter:
        name = f"{name}-{counter}"
    extension = Path(path).suffix.lower()
    return f"{name}{extension}"


def counter_in_name(path, timestamp, date_format=DEFAULT_DATE_FORMAT):
    """
    Když už soubor nese název pro své datum, vrátí jeho counter (0 = bez -N).

    2023-12-31_17.32.54.jpg   -> 0
    2023-12-31_17.32.54-2.jpg -> 2
    IMG_1234.jpg              -> None
    """
    path = Path(path)
    stem = re.escape(format_stem(timestamp, date_format))
    # bez přípony: soubor bez přípony, který už byl jednou přejmenován (2023-12-31_17.32.54)
    for extension in (path.suffix.lower(), ""):
        match = re.fullmatch(stem + r"(?:-([1-9]\d*))?" + re.escape(extension), path.name)
        if match:
            return int(match.group(1) or 0)
    return None


def is_same_file(first, second):
    # na macOS/Windows je IMG.JPG a img.jpg jeden a tentýž soubor
    try:
        return Path(first).samefile(second)
    except OSError:
        return False


def resolve_collision(source, timestamp, date_format=DEFAULT_DATE_FORMAT,
                      reserved=(), vacated=()):
    """
    Najde volný název ve stejné složce.

    Když už cílový soubor existuje (a není to ten samý), přidá se -1, -2, ...
    reserved - názvy přidělené v tomto běhu jiným souborům
    vacated  - soubory, které se v tomto běhu přejmenují, jejich názvy se uvolní
    """
    source = Path(source)
    counter = 0
    while True:
        target = source.parent / build_target_name(timestamp, source, date_format, counter)
        if target == source:
            return target
        if target not in reserved:
            if not target.exists() or target in vacated or is_same_file(target, source):
                return target
        counter += 1


def plan_renames(files, source=SOURCE_AUTO, date_format=DEFAULT_DATE_FORMAT):
    """
    Naplánuje nové názvy pro všechny soubory naráz.

    1. průchod: datum pro každý soubor
    2. průchod: soubory, které už správný název mají, si ho nechají,
       ostatní dostanou první volný název; jejich staré názvy se berou jako volné.

    Vrací (plány, soubory bez data). Dry-run i ostrý běh dostanou stejné názvy.
    """
    dated = []
    undated = []
    for file_path in files:
        found = get_timestamp(file_path, source)
        if found is None:
            logger.debug("Bez data, přeskakuji: %s", file_path)
            undated.append(file_path)
            continue
        timestamp, origin = found
        logger.debug("Datum %s (%s) pro %s", timestamp, origin, file_path)
        dated.append((Path(file_path), timestamp, origin))

    plans = {}
    reserved = set()
    for file_path, timestamp, origin in dated:
        if counter_in_name(file_path, timestamp, date_format) is not None:
            plans[file_path] = RenamePlan(file_path, file_path, timestamp, origin)
            reserved.add(file_path)

    vacated = {file_path for file_path, _, _ in dated if file_path not in plans}
    for file_path, timestamp, origin in dated:
        if file_path in plans:
            continue
        target = resolve_collision(file_path, timestamp, date_format, reserved, vacated)
        plans[file_path] = RenamePlan(file_path, target, timestamp, origin)
        reserved.add(target)

    # zachovat pořadí, v jakém byly soubory nalezeny
    return [plans[file_path] for file_path, _, _ in dated], undated


# ========================================================================
# PŘEJMENOVÁNÍ
# ========================================================================

def _temporary_path(path):
    counter = 0
    while True:
        candidate = path.with_name(f".stampit-{os.getpid()}-{counter}-{path.name}")
        if not candidate.exists():
            return candidate
        counter += 1


def apply_plans(plans, stats):
    """
    Provede naplánovaná přejmenování.

    Cíl může být ještě obsazený souborem, který se teprve přesune (A -> B, B -> C),
    takový plán počká na další kolo. Kruh (A -> B, B -> A) se rozetne
    odsunutím jednoho souboru na dočasný název. Existující soubor se nikdy nepřepíše.
    """
    pending = [plan for plan in plans if not plan.unchanged]
    location = {plan.source: plan.source for plan in pending}

    while pending:
        occupied_by_pending = {location[plan.source] for plan in pending}
        waiting = []

        for plan in pending:
            current = location[plan.source]
            if plan.target.exists() and not is_same_file(plan.target, current):
                if plan.target in occupied_by_pending:
                    waiting.append(plan)
                else:
                    message = f"Cílový soubor už existuje: {plan.target.name}"
                    logger.error("Chyba při přejmenování %s: %s", plan.source, message)
                    stats.errors.append((plan.source, message))
                continue

            try:
                current.rename(plan.target)
            except OSError as e:
                logger.error("Chyba při přejmenování %s: %s", plan.source, e)
                stats.errors.append((plan.source, str(e)))
                continue

            logger.info("Přejmenováno %s -> %s", plan.source, plan.target.name)
            stats.renamed.append((plan.source, plan.target))

        if waiting and len(waiting) == len(pending):
            # nikdo se nepohnul -> kruh; odsunout soubor, na jehož místo někdo čeká
            targets = {plan.target for plan in waiting}
            blocker = next(plan for plan in waiting if location[plan.source] in targets)
            current = location[blocker.source]
            temporary = _temporary_path(current)
            try:
                current.rename(temporary)
            except OSError as e:
                logger.error("Chyba při přejmenování %s: %s", blocker.source, e)
                stats.errors.append((blocker.source, str(e)))
                waiting.remove(blocker)
            else:
                logger.debug("Dočasně odsunuto %s -> %s", current, temporary.name)
                location[blocker.source] = temporary

        pending = waiting


def rename_files(path, source=SOURCE_AUTO, date_format=DEFAULT_DATE_FORMAT,
                 dry_run=False, include_all=False):
    """
    Hlavní funkce - přejmenuje všechny kandidáty pod `path`.

    Chyba u jednoho souboru běh nezastaví, jen se zapíše do statistik.
    Neexistující nebo nečitelná cesta vyhodí OSError ještě před prvním přejmenováním.
    """
    validate_date_format(date_format)
    files = collect_files(path, include_all=include_all)

    stats = RenameStats(total=len(files))
    logger.debug("Nalezeno souborů: %d", len(files))

    plans, stats.skipped = plan_renames(files, source, date_format)

    for plan in plans:
        if plan.unchanged:
            logger.debug("Už má správný název: %s", plan.source)
            stats.unchanged.append(plan.source)

    if dry_run:
        logger.info("Režim dry-run zapnutý (žádné přejmenování se neprovede)")
        for plan in plans:
            if not plan.unchanged:
                logger.info("%s -> %s", plan.source, plan.target.name)
                stats.renamed.append((plan.source, plan.target))
        return stats

    apply_plans(plans, stats)
    return stats
