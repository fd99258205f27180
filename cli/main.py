import argparse
import json
import logging
import sys
from pathlib import Path

from lineage_py.ahnentafel import AhnentafelService
from lineage_py.config import load_config
from lineage_py.descendancy import DescendancyService
from lineage_py.errors import NotFoundError, StoreError
from lineage_py.pedigree import PedigreeService
from lineage_py.seed import load_json_file, seed_demo
from lineage_py.storage import Storage


def _print_json(obj) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def cmd_load(store, cfg, args):
    counts = load_json_file(store, Path(args.file))
    print(f"Loaded {counts['persons']} persons, {counts['families']} families, {counts['family_children']} child links")


def cmd_demo(store, cfg, args):
    ids = seed_demo(store)
    for name, pid in ids.items():
        print(f"{name}: {pid}")


def cmd_descendancy(store, cfg, args):
    result = DescendancyService(store).get_descendancy(args.person_id, args.generations)
    _print_json(result.to_dict())


def cmd_pedigree(store, cfg, args):
    result = PedigreeService(store).get_pedigree(args.person_id, args.generations)
    _print_json(result.to_dict())


def cmd_ancestors(store, cfg, args):
    ancestors = PedigreeService(store).get_ancestors(args.person_id, args.generations)
    _print_json([p.to_dict() for p in ancestors])


def cmd_ahnentafel(store, cfg, args):
    service = AhnentafelService(PedigreeService(store))
    result = service.get_ahnentafel(args.person_id, args.generations)
    if args.text:
        sys.stdout.write(service.render_text(result))
    else:
        _print_json(result.to_dict())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lineage queries over a genealogical read model")
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--data-dir", help="Directory holding lineage.db (overrides config)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_load = subparsers.add_parser("load", help="Load a JSON read-model dump")
    p_load.add_argument("file")
    p_load.set_defaults(func=cmd_load)

    p_demo = subparsers.add_parser("demo", help="Seed a small demo family")
    p_demo.set_defaults(func=cmd_demo)

    for name, func, help_text in (
        ("descendancy", cmd_descendancy, "Descendant tree with spouses"),
        ("pedigree", cmd_pedigree, "Ancestor tree"),
        ("ancestors", cmd_ancestors, "Flat ancestor list"),
        ("ahnentafel", cmd_ahnentafel, "Numbered ancestor report"),
    ):
        sp = subparsers.add_parser(name, help=help_text)
        sp.add_argument("person_id")
        sp.add_argument("-g", "--generations", type=int, default=None)
        sp.set_defaults(func=func)
        if name == "ahnentafel":
            sp.add_argument("--text", action="store_true", help="Plain-text report instead of JSON")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = load_config(args.config)
    if args.data_dir:
        cfg.data_dir = Path(args.data_dir)
    if hasattr(args, "generations") and (args.generations is None or args.generations <= 0):
        args.generations = cfg.default_generations
    logging.basicConfig(level=cfg.log_level)

    try:
        store = Storage(cfg.data_dir)
    except StoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    try:
        args.func(store, cfg, args)
    except NotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except StoreError as exc:
        print(f"Error: record store failure: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        # unreadable or malformed dump file
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
