"""
Command-line driver: decode one package and print, dump or export it.

Usage:
    uasset-dump FILE
    uasset-dump FILE --json                 # writes to config.JSON_DIR
    uasset-dump FILE --json out.json --silent
    uasset-dump FILE --thumbnails thumbs/
    uasset-dump FILE --registry
    uasset-dump FILE --hexdump 3           # raw bytes of export 3
"""

import argparse
import os
import sys

from . import config
from .errors import UAssetError
from .hexdump import hexdump
from .package import UAssetPackage
from .registry import read_asset_registry
from .render import to_json
from .thumbnails import read_thumbnails


def resolve_path(path: str) -> str:
    """Relative paths that do not exist locally are looked up under ASSETS_PATH."""
    if os.path.exists(path) or os.path.isabs(path):
        return path
    return os.path.join(config.ASSETS_PATH, path)


def print_exports(pkg: UAssetPackage):
    for export in pkg.exports:
        status = export.stream_state
        if export.error is not None:
            status += f" ({export.error.kind} at 0x{export.error.offset:x}: {export.error.property_name})"
        print(f"  [{export.index}] {export.class_name} {export.object_name}: "
              f"{len(export.properties)} properties, {status}")
        for prop in export.properties:
            value = prop.value.hex() if isinstance(prop.value, bytes) else prop.value
            print(f"      {prop.name} = {value}")


def write_json(pkg: UAssetPackage, output: str, silent: bool) -> str:
    if not output:
        stem = os.path.splitext(os.path.basename(pkg.filepath))[0]
        output = os.path.join(config.JSON_DIR, f"{stem}.json")
    parent = os.path.dirname(output)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(output, "w") as f:
        f.write(to_json(pkg.package))
    if not silent:
        print(f"Saved: {output}")
    return output


def write_thumbnails(pkg: UAssetPackage, output_dir: str, silent: bool) -> int:
    output_dir = output_dir or config.THUMBNAILS_DIR
    saved = 0
    for thumb in read_thumbnails(pkg.data, pkg.header):
        path = thumb.save(output_dir)
        if path:
            saved += 1
            if not silent:
                print(f"Saved: {path} ({thumb.width}x{thumb.height})")
    return saved


def print_registry(pkg: UAssetPackage):
    registry = read_asset_registry(pkg.data, pkg.header)
    print(f"Asset registry: {len(registry.entries)} objects")
    for entry in registry.entries:
        print(f"  {entry.class_name} {entry.object_path}")
        for key, value in entry.tags.items():
            print(f"      {key} = {value}")


def print_hexdump(pkg: UAssetPackage, export_index: int) -> bool:
    if not 1 <= export_index <= len(pkg.exports):
        print(f"ERROR: no export {export_index} (package has {len(pkg.exports)})",
              file=sys.stderr)
        return False
    export = pkg.exports[export_index - 1]
    print(f"Export {export_index} {export.object_name} "
          f"@ 0x{export.serial_offset:x} ({export.serial_size} bytes)")
    print(hexdump(pkg.get_export_data(export), export.serial_offset))
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Decode a .uasset package")
    parser.add_argument("file", help="Package file (relative paths also tried under UASSET_ASSETS_PATH)")
    parser.add_argument("--json", nargs="?", const="", metavar="OUT",
                        help="Write the decoded package as JSON (default: JSON_DIR/<name>.json)")
    parser.add_argument("--thumbnails", nargs="?", const="", metavar="DIR",
                        help="Save embedded thumbnails (default: THUMBNAILS_DIR)")
    parser.add_argument("--registry", action="store_true", help="Print asset registry tags")
    parser.add_argument("--hexdump", type=int, metavar="EXPORT_INDEX",
                        help="Hex dump the serial data of one export (1-based)")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    args = parser.parse_args(argv)

    path = resolve_path(args.file)
    if not os.path.exists(path):
        print(f"ERROR: File not found: {path}", file=sys.stderr)
        return 1

    try:
        pkg = UAssetPackage(path)
    except UAssetError as e:
        print(f"ERROR: {path}: {e}", file=sys.stderr)
        return 1

    if not args.silent:
        pkg.dump_info()
        print_exports(pkg)

    if args.json is not None:
        write_json(pkg, args.json, args.silent)

    if args.thumbnails is not None:
        count = write_thumbnails(pkg, args.thumbnails, args.silent)
        if not args.silent:
            print(f"Thumbnails: {count}")

    if args.registry:
        print_registry(pkg)

    if args.hexdump is not None and not print_hexdump(pkg, args.hexdump):
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
