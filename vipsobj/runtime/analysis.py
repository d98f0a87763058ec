"""Type hierarchy analysis and runtime layout verification."""
from __future__ import annotations

import ctypes
from pathlib import Path

try:
    import networkx as nx
except ModuleNotFoundError:  # pragma: no cover
    nx = None

try:
    import matplotlib.pyplot as plt
except ModuleNotFoundError:  # pragma: no cover
    plt = None

try:
    import pydot
except ModuleNotFoundError:  # pragma: no cover
    pydot = None

from ..constants import TYPE_COLORS
from . import layout
from . import records
from .capabilities import (
    declared_parent,
    implemented_interfaces,
    is_interface,
    legal_upcast_targets,
)
from .meta import list_types


def _kind(wrapper) -> str:
    if is_interface(wrapper):
        return "interface"
    if vars(wrapper).get("get_type_symbol"):
        return "object"
    return "subtype"


def build_type_graph(types=None):
    """Directed graph of wrapped types.

    Edges run from a type to its parent (``relation="inherits"``) and to each
    interface it declares (``relation="implements"``).
    """

    if nx is None:
        raise RuntimeError("Type graphs require networkx to be installed")

    types = list(types) if types is not None else list_types()
    graph = nx.DiGraph()
    for wrapper in types:
        kind = _kind(wrapper)
        graph.add_node(
            wrapper.type_name,
            kind=kind,
            color=TYPE_COLORS[kind],
            label=wrapper.__name__,
            partial=layout.is_partial(wrapper.Record),
        )
    for wrapper in types:
        parent = declared_parent(wrapper)
        if parent is not None and parent.type_name in graph:
            graph.add_edge(wrapper.type_name, parent.type_name, relation="inherits")
        for iface in vars(wrapper).get("implements", ()):
            if iface.type_name in graph:
                graph.add_edge(wrapper.type_name, iface.type_name, relation="implements")
    return graph


def upcast_closure(graph, type_name) -> set:
    """Type names reachable from *type_name*: its legal upcast targets."""

    if nx is None:
        raise RuntimeError("Type graphs require networkx to be installed")
    return set(nx.descendants(graph, type_name))


def print_hierarchy(types=None):
    types = list(types) if types is not None else list_types()
    children = {}
    roots = []
    for wrapper in types:
        if is_interface(wrapper):
            continue
        parent = declared_parent(wrapper)
        if parent is None or parent not in types:
            roots.append(wrapper)
        else:
            children.setdefault(parent, []).append(wrapper)

    def walk(wrapper, indent):
        pad = "  " * indent
        line = f"{pad}{wrapper.type_name}"
        own = vars(wrapper).get("implements", ())
        if own:
            line += " implements " + ", ".join(i.type_name for i in own)
        if layout.is_partial(wrapper.Record):
            line += " (partial)"
        print(line)
        for child in children.get(wrapper, []):
            walk(child, indent + 1)

    for root in roots:
        walk(root, 0)
    interfaces = [w.type_name for w in types if is_interface(w)]
    if interfaces:
        print("interfaces: " + ", ".join(interfaces))


def export_graphviz(types, output_path):  # pragma: no cover
    """Export the type hierarchy as a Graphviz SVG."""

    if pydot is None:
        raise RuntimeError("Graphviz export requires the optional pydot dependency")

    graph = build_type_graph(types)
    dot = pydot.Dot(
        "vipsobj_types",
        graph_type="digraph",
        rankdir="BT",
        fontname="Helvetica",
    )
    for name, data in graph.nodes(data=True):
        dot.add_node(
            pydot.Node(
                name,
                label=name,
                shape="ellipse" if data["kind"] == "interface" else "box",
                style="filled,dashed" if data["partial"] else "filled",
                fillcolor=data["color"],
                fontname="Helvetica",
            )
        )
    for src, dst, data in graph.edges(data=True):
        dot.add_edge(
            pydot.Edge(
                src,
                dst,
                style="dashed" if data["relation"] == "implements" else "solid",
                color="#34495e",
            )
        )

    output_path = Path(output_path)
    if output_path.parent and not output_path.parent.exists():
        output_path.parent.mkdir(parents=True, exist_ok=True)
    dot.write_svg(str(output_path))
    print(f"  ✓ Graphviz visualization exported → {output_path}")


def visualize_types(types=None):  # pragma: no cover
    """Draw the type hierarchy with matplotlib."""

    if nx is None or plt is None:
        raise RuntimeError("Visualization requires networkx and matplotlib to be installed")

    graph = build_type_graph(types)
    positions = nx.spring_layout(graph, seed=42)
    dashed = [(u, v) for u, v, d in graph.edges(data=True) if d["relation"] == "implements"]
    solid = [(u, v) for u, v, d in graph.edges(data=True) if d["relation"] == "inherits"]
    plt.figure()
    nx.draw_networkx_nodes(
        graph,
        positions,
        node_color=[graph.nodes[n]["color"] for n in graph.nodes],
        edgecolors="black",
    )
    nx.draw_networkx_labels(graph, positions, font_size=8)
    nx.draw_networkx_edges(graph, positions, edgelist=solid)
    nx.draw_networkx_edges(graph, positions, edgelist=dashed, style="dashed")
    plt.title("vipsobj type hierarchy")
    plt.tight_layout()
    plt.show()


def _entry(wrapper, check, ok, detail=""):
    return {"type": wrapper.type_name, "check": check, "ok": bool(ok), "detail": detail}


def _size_entry(wrapper, check, record, actual):
    expected = ctypes.sizeof(record)
    if layout.is_partial(record):
        ok = expected <= actual
        detail = f"mirrors {expected} of {actual} bytes"
    else:
        ok = expected == actual
        detail = f"mirror {expected} bytes, runtime {actual} bytes"
    return _entry(wrapper, check, ok, detail)


def verify_type_table(runtime, types=None) -> list:
    """Compare every wrapped type against the runtime's own type table.

    Checks record sizes (``g_type_query``), the declared parent
    (``g_type_parent``), interface conformance (``g_type_is_a``) and that
    each record only appends to its parent's. Returns one entry per check.
    """

    types = list(types) if types is not None else list_types()
    report = []
    lib = runtime.lib
    for wrapper in types:
        try:
            gtype = wrapper.gtype(runtime)
        except (AttributeError, TypeError) as exc:
            report.append(_entry(wrapper, "gtype", False, str(exc)))
            continue
        query = records.GTypeQuery()
        lib.g_type_query(gtype, ctypes.addressof(query))
        if not query.type:
            report.append(_entry(wrapper, "query", False, "runtime does not know this type"))
            continue
        report.append(_size_entry(wrapper, "class_size", wrapper.ClassRecord, query.class_size))
        if is_interface(wrapper):
            continue
        report.append(_size_entry(wrapper, "instance_size", wrapper.Record, query.instance_size))

        parent = declared_parent(wrapper)
        if parent is not None:
            actual_parent = lib.g_type_parent(gtype)
            report.append(
                _entry(
                    wrapper,
                    "parent",
                    actual_parent == parent.gtype(runtime),
                    f"expected {parent.type_name}, runtime says {runtime.type_name(actual_parent)}",
                )
            )
            problems = layout.verify_append_only(wrapper.Record, parent.Record)
            problems += layout.verify_append_only(wrapper.ClassRecord, parent.ClassRecord)
            report.append(_entry(wrapper, "append_only", not problems, "; ".join(problems)))
        for iface in implemented_interfaces(wrapper):
            report.append(
                _entry(
                    wrapper,
                    f"implements:{iface.type_name}",
                    lib.g_type_is_a(gtype, iface.gtype(runtime)),
                )
            )
    return report


def print_verification(report) -> bool:
    ok = True
    for entry in report:
        mark = "✓" if entry["ok"] else "✗"
        ok = ok and entry["ok"]
        detail = f" ({entry['detail']})" if entry["detail"] else ""
        print(f"  {mark} {entry['type']} {entry['check']}{detail}")
    return ok


__all__ = [
    "build_type_graph",
    "export_graphviz",
    "legal_upcast_targets",
    "print_hierarchy",
    "print_verification",
    "upcast_closure",
    "verify_type_table",
    "visualize_types",
]
