"""Small example script that demonstrates the lineage queries.

Seeds the demo Smith family inside `data/example_demo` and prints:
 - the descendant tree below George with spouses
 - the flat ancestor list of Junior
 - Junior's Ahnentafel report

Run:
    python scripts/example_queries.py
"""
from pathlib import Path
import sys

# Ensure repo root is on sys.path when running this script directly
repo_root = Path(__file__).resolve().parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from lineage_py.ahnentafel import AhnentafelService
from lineage_py.descendancy import DescendancyService
from lineage_py.pedigree import PedigreeService
from lineage_py.seed import seed_demo
from lineage_py.storage import Storage


def print_tree(node, indent=0):
    spouses = ", ".join(s.name for s in node.spouses)
    line = "  " * indent + f"[{node.generation}] {node.full_name}"
    if spouses:
        line += f"  x {spouses}"
    print(line)
    for child in node.children:
        print_tree(child, indent + 1)


def main():
    data_dir = Path("data") / "example_demo"
    store = Storage(data_dir)
    try:
        ids = seed_demo(store)

        print("Descendants of George:")
        desc = DescendancyService(store).get_descendancy(ids["george"], 4)
        print_tree(desc.root, 1)
        print(f"  total={desc.total_descendants} generations={desc.max_generation}")

        pedigree = PedigreeService(store)
        print("\nAncestors of Junior:")
        for p in pedigree.get_ancestors(ids["junior"], 4):
            print(f"  - {p.full_name} (id={p.id[:8]})")

        print()
        ahnentafel = AhnentafelService(pedigree)
        print(ahnentafel.render_text(ahnentafel.get_ahnentafel(ids["junior"], 4)))
    finally:
        store.close()


if __name__ == "__main__":
    main()
