#!/usr/bin/env python3
# ↑ Říká systému: spuštěno Pythonem 3 (umožní spouštět soubor i jako ./cli.py)

import argparse              # práce s argumenty z příkazové řádky (CLI)
import logging
import sys

from formats import DEFAULT_DATE_FORMAT, SOURCE_AUTO, SOURCE_EXIF, SOURCE_MODIFIED
from stampit import __version__, rename_files, validate_date_format

logger = logging.getLogger("stampit")


def setup_logging(verbose=False):
    # Výpis ve tvaru "[INFO] zpráva", -v zapne i podrobnosti (DEBUG)
    logging.basicConfig(format="[%(levelname)s] %(message)s")
    logging.getLogger().setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="stampit",
        description="Rename files using EXIF or last modified date.",
    )

    # path : soubor nebo složka (povinné)
    parser.add_argument("path", help="Cesta k souboru nebo složce")

    # -e / -m : odkud brát datum, nejde zadat obojí
    source = parser.add_mutually_exclusive_group()
    source.add_argument("-e", "--exif", action="store_const", dest="source",
                        const=SOURCE_EXIF, help="Použít jen datum z EXIF")
    source.add_argument("-m", "--modified", action="store_const", dest="source",
                        const=SOURCE_MODIFIED, help="Použít jen čas poslední změny souboru")
    parser.set_defaults(source=SOURCE_AUTO)

    parser.add_argument("-f", "--format", dest="date_format", default=DEFAULT_DATE_FORMAT,
                        help="Vlastní formát data (strftime), výchozí %(default)s")
    # --dry-run : jen simulace, nic fyzicky nepřejmenovat
    parser.add_argument("-n", "--dry-run", action="store_true",
                        help="Neprovádět změny, jen vypsat, co by se stalo")
    parser.add_argument("-a", "--all", dest="include_all", action="store_true",
                        help="Přejmenovat všechny viditelné soubory, nejen obrázky")
    parser.add_argument("-v", "--verbose", action="store_true", help="Podrobný výpis")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def print_summary(stats, dry_run=False):
    print("=" * 70)
    print("📊 VÝSLEDKY" + (" (dry-run)" if dry_run else ""))
    print("=" * 70)
    print(f"📁 Nalezeno souborů: {stats.total}")
    print(f"✅ {'K přejmenování' if dry_run else 'Přejmenováno'}: {len(stats.renamed)}")
    print(f"➖ Beze změny: {len(stats.unchanged)}")
    print(f"⏭️  Bez data: {len(stats.skipped)}")
    print(f"❌ Chyby: {len(stats.errors)}")
    for path, error in stats.errors:
        print(f"   - {path}: {error}")


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    logger.debug("Cesta: %s", args.path)
    logger.debug("Zdroj data: %s", args.source)
    logger.debug("Formát: %s", args.date_format)

    # formát se ověří předem, ať se při chybě nic nepřejmenuje
    try:
        validate_date_format(args.date_format)
    except ValueError as e:
        logger.error("Neplatný formát: %s", e)
        return 1

    try:
        stats = rename_files(
            args.path,
            source=args.source,
            date_format=args.date_format,
            dry_run=args.dry_run,
            include_all=args.include_all,
        )
    except (FileNotFoundError, NotADirectoryError) as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("Chyba při čtení složky: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.error("Přerušeno")
        return 130

    print_summary(stats, dry_run=args.dry_run)
    return 0 if stats.ok else 1


if __name__ == "__main__":
    sys.exit(main())  # spustí hlavní funkci, když soubor spustíme přímo
