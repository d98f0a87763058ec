"""Binding manifests: serialized Layout Mirror descriptions with a certificate."""

from __future__ import annotations

from datetime import datetime, timezone
import hashlib
import json

from ..constants import LEDGER_FILE, MANIFEST_VERSION
from . import crypto as _crypto
from .meta import describe_type, list_types


def _timestamp():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _payload_digest(payload):
    data = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def _layout_payload(type_docs):
    return [
        {
            "type_name": t["type_name"],
            "record": t["record"],
            "class_record": t["class_record"],
            "ancestors": t["ancestors"],
            "interfaces": t["interfaces"],
        }
        for t in type_docs
    ]


def layout_certificate(type_docs):
    """Certificate over the record layouts in *type_docs*.

    It fails when a type names an ancestor or interface the manifest does not
    describe.
    """

    payload = _layout_payload(type_docs)
    known = {t["type_name"] for t in payload}
    missing = sorted(
        {name for t in payload for name in t["ancestors"] + t["interfaces"]} - known
    )
    fields = sum(len(t["record"]["fields"]) + len(t["class_record"]["fields"]) for t in payload)
    summary = f"{len(payload)} types, {fields} fields"
    if missing:
        summary += "; undescribed: " + ", ".join(missing)
    return {
        "payload_digest": _payload_digest(payload),
        "summary": summary,
        "ok": not missing,
    }


def build_binding_manifest(types=None, report=None):
    """Create an in-memory binding manifest for *types* (default: every type)."""

    types = list(types) if types is not None else list_types()
    type_docs = [describe_type(t) for t in types]
    doc = {
        "vipsobj_version": MANIFEST_VERSION,
        "timestamp": _timestamp(),
        "types": type_docs,
        "certificates": {"layout": layout_certificate(type_docs)},
    }
    if report is not None:
        doc["verification"] = list(report)
    return doc


def write_binding_manifest(doc, filename):
    with open(filename, "w", encoding="utf-8") as f:
        json.dump(doc, f, indent=2)
    print(f"  ✓ Binding manifest exported → {filename}")
    return doc


def _validate_certificate(name, stored, expected):
    if not stored:
        raise ValueError(f"Manifest missing {name} certificate")
    if stored.get("payload_digest") != expected["payload_digest"]:
        raise ValueError(f"{name} certificate digest mismatch")
    if stored.get("summary") != expected["summary"]:
        raise ValueError(f"{name} certificate summary mismatch")
    if not stored.get("ok"):
        raise ValueError(f"{name} certificate indicates failure: {stored['summary']}")


def verify_binding_manifest(doc):
    """Recompute the layout certificate and compare it with the stored one."""

    certificates = doc.get("certificates")
    if not certificates:
        raise ValueError("Binding manifest missing certificates")
    expected = layout_certificate(doc.get("types", []))
    _validate_certificate("layout", certificates.get("layout"), expected)
    return True


def load_binding_manifest(filename):
    with open(filename, "r", encoding="utf-8") as f:
        doc = json.load(f)
    verify_binding_manifest(doc)
    return doc


def canonicalize_manifest(doc):
    """Key-sorted copy of *doc* without its timestamp."""

    def sort_dict(d):
        if isinstance(d, dict):
            return {k: sort_dict(v) for k, v in sorted(d.items()) if k != "timestamp"}
        if isinstance(d, list):
            return [sort_dict(x) for x in d]
        return d

    return sort_dict(doc)


def hash_manifest_document(doc):
    canon = canonicalize_manifest(doc)
    data = json.dumps(canon, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hash_manifest(filename):
    """SHA-256 of a manifest file's canonical form."""

    h = hash_manifest_document(load_binding_manifest(filename))
    print(f"SHA256({filename}) = {h}")
    return h


def diff_manifests(file_a, file_b):
    """Compare two manifests and print which types were added, removed or changed."""

    a = canonicalize_manifest(load_binding_manifest(file_a))
    b = canonicalize_manifest(load_binding_manifest(file_b))
    ha, hb = hash_manifest_document(a), hash_manifest_document(b)
    summary = {"identical": ha == hb, "added": [], "removed": [], "changed": []}
    if ha == hb:
        print(f"✓ Manifests are identical ({ha})")
        return summary

    print(f"✗ Manifests differ\n  {file_a}: {ha}\n  {file_b}: {hb}")
    types_a = {t["type_name"]: t for t in a["types"]}
    types_b = {t["type_name"]: t for t in b["types"]}
    summary["added"] = sorted(set(types_b) - set(types_a))
    summary["removed"] = sorted(set(types_a) - set(types_b))
    for name in sorted(set(types_a) & set(types_b)):
        ta, tb = types_a[name], types_b[name]
        if ta == tb:
            continue
        summary["changed"].append(name)
        for key in ("instance_size", "class_size"):
            if ta.get(key) != tb.get(key):
                print(f"  • {name} {key}: {ta.get(key)} vs {tb.get(key)}")
    for name in summary["added"]:
        print(f"  + {name}")
    for name in summary["removed"]:
        print(f"  - {name}")
    return summary


def record_verification(manifest_filename, report, ledger_file=LEDGER_FILE, sign=True):
    """Append a (signed) verification entry for a manifest to the ledger."""

    sha = hash_manifest(manifest_filename)
    failures = [f"{e['type']}:{e['check']}" for e in report if not e["ok"]]
    entry = {
        "timestamp": _timestamp(),
        "filename": manifest_filename,
        "hash": sha,
        "signature": _crypto.sign_hash(sha) if sign else None,
        "checks": len(report),
        "failures": failures,
        "ok": not failures,
    }
    with open(ledger_file, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry) + "\n")
    print(f"  📜 Recorded verification → {ledger_file}")
    return entry


def show_ledger(limit=10, ledger_file=LEDGER_FILE):
    """Display recent ledger entries, newest first."""

    try:
        with open(ledger_file, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except FileNotFoundError:
        print("No ledger yet.")
        return []

    entries = [json.loads(line) for line in lines[-limit:]]
    print(f"\nvipsobj ledger, last {len(entries)} entries:")
    for e in reversed(entries):
        mark = "✓" if e["ok"] else "✗"
        print(f"• {e['timestamp']}  {e['filename']}  [{mark} {e['checks']} checks]  {e['hash'][:12]}…")
        for failure in e["failures"]:
            print(f"    ✗ {failure}")
    return entries


__all__ = [
    "build_binding_manifest",
    "canonicalize_manifest",
    "diff_manifests",
    "hash_manifest",
    "hash_manifest_document",
    "layout_certificate",
    "load_binding_manifest",
    "record_verification",
    "show_ledger",
    "verify_binding_manifest",
    "write_binding_manifest",
]
