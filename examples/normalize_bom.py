#!/usr/bin/env python3
"""Example: import a BOM file and resolve ambiguous rows with one policy.

This script shows the whole import path: parse the file, discover the
designator column, split multi-designator rows, normalize field names and
settle rows whose quantity conflicts with their designator list.
"""

import logging

from bomsync import BomImporter, Resolution, load_settings


def normalize_bom(input_file: str, project_name: str, policy: str = "skip"):
    """Import a BOM file and print a summary.

    Args:
        input_file: Path to a .csv, .tsv or .xlsx BOM
        project_name: Project tag for every component
        policy: How to settle ambiguous rows: flatten, keep or skip
    """
    settings = load_settings()
    importer = BomImporter(settings.bom_config())

    processed = importer.process(input_file, project_name)
    print(f"✓ Parsed {processed.count} rows using designator column "
          f"{processed.designator_column!r}")
    print(f"✓ {len(processed.valid)} components ready")

    components = list(processed.valid)
    if processed.needs_resolution:
        resolution = Resolution(policy)
        print(f"\n{len(processed.ambiguous)} ambiguous rows, applying {resolution.value!r}:")
        for item in processed.ambiguous:
            print(f"  {', '.join(item.candidates)} "
                  f"(quantity {item.original_quantity})")
        resolutions = {item.id: resolution for item in processed.ambiguous}
        components.extend(importer.resolve(processed, resolutions))

    print(f"\nColumns: {', '.join(processed.headers)}")
    print(f"Total components: {len(components)}")

    return components


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 3:
        print("Usage: python normalize_bom.py <input_file> <project_name> [flatten|keep|skip]")
        print("\nExample:")
        print("  python normalize_bom.py board_bom.csv MainBoard flatten")
        sys.exit(1)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    normalize_bom(
        sys.argv[1],
        sys.argv[2],
        sys.argv[3] if len(sys.argv) > 3 else "skip",
    )
