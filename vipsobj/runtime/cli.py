"""Command-line interface for vipsobj."""
from __future__ import annotations

import argparse
import json
import sys

from .analysis import (
    export_graphviz,
    print_hierarchy,
    print_verification,
    verify_type_table,
    visualize_types,
)
from .core import find_type
from .crypto import verify_signature
from .image import open_for_average
from .library import get_runtime
from .manifest import (
    build_binding_manifest,
    diff_manifests,
    hash_manifest,
    record_verification,
    show_ledger,
    write_binding_manifest,
)
from .meta import describe_type


def _runtime_callable(name, fallback):
    runtime_mod = sys.modules.get("vipsobj.runtime")
    if runtime_mod and hasattr(runtime_mod, name):
        return getattr(runtime_mod, name)
    return fallback


def parse_args(args):
    argp = argparse.ArgumentParser(description="vipsobj GObject/libvips binding tools")

    argp.add_argument("--types", action="store_true", help="Print the wrapped type hierarchy")
    argp.add_argument("--describe", metavar="TYPE", help="Describe a wrapped type as JSON")
    argp.add_argument(
        "--verify",
        action="store_true",
        help="Check record sizes, parents and interfaces against the loaded runtime",
    )
    argp.add_argument("--manifest", metavar="OUTPUT", help="Write a binding manifest")
    argp.add_argument(
        "--no-sign",
        action="store_true",
        help="Record ledger entries without a signature",
    )
    argp.add_argument("--hash", metavar="FILE", help="Compute hash of a binding manifest")
    argp.add_argument(
        "--diff",
        nargs=2,
        metavar=("A", "B"),
        help="Compare two binding manifests",
    )
    argp.add_argument("--ledger", action="store_true", help="Show the verification ledger")
    argp.add_argument(
        "--verify-signature",
        metavar="HASH",
        help="Verify a signature for a ledger entry hash",
    )
    argp.add_argument(
        "--viz",
        metavar="OUTPUT",
        help="Export a Graphviz type hierarchy to an SVG file",
    )
    argp.add_argument(
        "--visualize", action="store_true", help="Draw the type hierarchy with matplotlib"
    )
    argp.add_argument("--avg", metavar="FILE", help="Print the pixel average of an image")

    return argp.parse_args(args)


def run_average(filename, runtime=None):
    """Open *filename* and print its pixel average."""

    runtime = runtime or _runtime_callable("get_runtime", get_runtime)()
    runtime.install_log_handler()
    runtime.init()
    image = open_for_average(filename, runtime=runtime)
    if image is None:
        runtime.error_exit("unable to open file")
    with image:
        value = image.avg()
    print(f"Pixel average of {filename} is {value}")
    runtime.shutdown()
    return value


def main(args, runtime=None):
    params = parse_args(args)

    if params.describe:
        try:
            wrapper = find_type(params.describe)
        except KeyError as exc:
            print(f"✗ {exc.args[0]}")
            return 1
        print(json.dumps(describe_type(wrapper, inherited=True), indent=2))
        return 0
    if params.hash:
        _runtime_callable("hash_manifest", hash_manifest)(params.hash)
        return 0
    if params.diff:
        summary = _runtime_callable("diff_manifests", diff_manifests)(*params.diff)
        return 0 if summary["identical"] else 1
    if params.ledger:
        _runtime_callable("show_ledger", show_ledger)()
        return 0
    if params.verify_signature:
        ok = _runtime_callable("verify_signature", verify_signature)(
            params.verify_signature,
            input("Signature hex: ").strip(),
        )
        print("✓ Signature valid" if ok else "✗ Invalid signature")
        return 0 if ok else 1
    if params.avg:
        run_average(params.avg, runtime)
        return 0

    status = 0
    report = None
    if params.verify:
        runtime = runtime or _runtime_callable("get_runtime", get_runtime)()
        print("Runtime type table:")
        report = verify_type_table(runtime)
        if not print_verification(report):
            status = 1
    if params.manifest:
        doc = build_binding_manifest(report=report)
        write_binding_manifest(doc, params.manifest)
        if report is not None:
            _runtime_callable("record_verification", record_verification)(
                params.manifest, report, sign=not params.no_sign
            )
    if params.viz:
        export_graphviz(None, params.viz)
    if params.visualize:
        visualize_types()
    if params.types or not (params.verify or params.manifest or params.viz or params.visualize):
        print_hierarchy()
    return status


__all__ = [
    "main",
    "parse_args",
    "run_average",
]


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
