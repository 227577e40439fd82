#!/usr/bin/env python3
"""
D-Bus Client Code Generator

Parses D-Bus object declarations and generates typed Python client classes
built on dbusgen.runtime.

Usage:
    python generate_bindings.py input.dbus --output-dir generated/
    python generate_bindings.py input.dbus -o generated/ --import myapp.dbus_types
    python generate_bindings.py input.dbus --check
"""

import argparse
import logging
import sys
import time
from pathlib import Path

# Add parent directory to path so dbusgen package can be found
sys.path.insert(0, str(Path(__file__).parent.parent))

from dbusgen import DBusIDLError, PythonGenerator, compile_module


def main(argv=None):
    start_time = time.perf_counter()

    parser = argparse.ArgumentParser(description="Generate D-Bus client bindings")
    parser.add_argument("idl_file", nargs="?", help="Path to declaration file (positional)")
    parser.add_argument("--idl", help="Path to declaration file (alternative)")
    parser.add_argument("--output-dir", "-o", default="generated", help="Output directory")
    parser.add_argument("--namespace", "-n", default="", help="Generated module name")
    parser.add_argument("--import", dest="imports", action="append", default=[],
                        help="Module providing host types (repeatable)")
    parser.add_argument("--check", action="store_true", help="Only parse and validate")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    # Support both positional and --idl argument
    idl_file = args.idl_file or args.idl
    if not idl_file:
        parser.error("declaration file is required (positional or --idl)")

    idl_path = Path(idl_file)
    namespace = args.namespace or idl_path.stem.replace("-", "_")
    source = idl_path.read_text()

    try:
        module = compile_module(source)
        if args.check:
            print(f"Checked: {idl_path} ({len(module.objects)} object(s))")
            return 0
        content = PythonGenerator(module, namespace, args.imports).generate()
    except DBusIDLError as error:
        print(error.render(source, str(idl_path)), file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    path = output_dir / f"{namespace}.py"
    path.write_text(content)
    print(f"Generated: {path}")

    elapsed = time.perf_counter() - start_time
    print(f"Generation completed in {elapsed*1000:.2f} ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
