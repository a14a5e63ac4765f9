"""
Multi-panel wall layouts. Geometry is in inches; x/y are offsets of each
panel inside the layout bounding box (totals). Offsets may be slightly
negative where panels bleed past the box edge in the printed template.
"""
from collections import namedtuple

Panel = namedtuple("Panel", "id width height x y ratio")
Layout = namedtuple("Layout", "id name description panels total_width total_height")


def _panels(*rows):
    return tuple(Panel(f"panel-{i}", *row) for i, row in enumerate(rows, start=1))


def _grid(xs, ys, size=24):
    return [(size, size, x, y, 1) for y in ys for x in xs]


_GEOMETRY = (
    ("3panel-1", "30x49, 24x24(2)", 54, 49,
     _panels((30, 49, 0, 0, 1.63), (24, 24, 31, 0, 1), (24, 24, 31, 25, 1))),
    ("3panel-2", "24x36(3)", 72, 36,
     _panels((24, 36, -1, 0, 1.5), (24, 36, 25, 0, 1.5), (24, 36, 51, 0, 1.5))),
    ("3panel-3", "24x24(2), 24x36", 72, 36,
     _panels((24, 24, -2, 6, 1), (24, 36, 24, 0, 1.5), (24, 24, 50, 6, 1))),
    ("3panel-4", "24x16, 16x24, 12x16", 40, 40,
     _panels((24, 16, -1, 0, 0.67), (16, 24, 24, 0, 1.5), (16, 16, 24, 25, 1.33))),
    ("4panel-1", "24x24 (4) WD", 48, 48,
     _panels(*_grid((0, 25), (0, 25)))),
    ("4panel-2", "24x36(4) WD", 96, 36,
     _panels(*[(24, 36, x, 0, 1.5) for x in (-1, 24, 49, 74)])),
    ("4panel-3", "30x49, 49x24, 24x24(2) WD", 78, 49,
     _panels((30, 49, -2, 0, 1.63), (49, 24, 30, 0, 0.49), (24, 24, 30, 25, 1), (24, 24, 55, 25, 1))),
    ("4panel-4", "30x75, 24x24(3) WD", 54, 75,
     _panels((30, 76, -1, 0, 2.5), (24, 24, 30, 0, 1), (24, 24, 30, 26, 1), (24, 24, 30, 52, 1))),
    ("5panel-1", "24x24(4), 36x49 WD", 84, 49,
     _panels((24, 24, -1, 0, 1), (36, 49, 24, 0, 1.36), (24, 24, 61, 0, 1),
             (24, 24, -1, 25, 1), (24, 24, 61, 25, 1))),
    ("6panel-1", "24x24(6) WD", 72, 48,
     _panels(*_grid((-1, 24, 49), (0, 25)))),
    ("9panel-1", "24x24(9) WD", 72, 72,
     _panels(*_grid((-1, 24, 49), (0, 25, 50)))),
)


def _name(layout_id, family):
    count, _, variant = layout_id.partition("panel-")
    return f"{count} Panel {family} ({variant})"


MULTI_LAYOUTS = tuple(
    Layout(lid, _name(lid, "Fabric"), desc, panels, tw, th)
    for lid, desc, tw, th, panels in _GEOMETRY
)

SPLIT_LAYOUT_IDS = ("3panel-1", "3panel-2", "3panel-3", "4panel-1", "4panel-2")

SPLIT_LAYOUTS = tuple(
    Layout(lid, _name(lid, "Split"), desc, panels, tw, th)
    for lid, desc, tw, th, panels in _GEOMETRY
    if lid in SPLIT_LAYOUT_IDS
)

_BY_TYPE = {"multi": MULTI_LAYOUTS, "split": SPLIT_LAYOUTS}


def layouts_for(product_type: str):
    return _BY_TYPE.get(product_type, ())


def get_layout(layout_id: str, product_type: str = "multi"):
    for layout in layouts_for(product_type):
        if layout.id == layout_id:
            return layout
    return None


def panel_boxes(layout: Layout):
    """Each panel as left/top/width/height percentages of the bounding box."""
    return [
        {
            "id": p.id,
            "left": p.x / layout.total_width * 100,
            "top": p.y / layout.total_height * 100,
            "width": p.width / layout.total_width * 100,
            "height": p.height / layout.total_height * 100,
        }
        for p in layout.panels
    ]


def canvas_dimensions(layout: Layout, base_size: float, scale: float = 1.0):
    """Fits the layout's aspect ratio inside a base_size square mock area."""
    aspect = layout.total_width / layout.total_height
    width = base_size * scale
    height = width / aspect
    if height > base_size:
        height = base_size * scale
        width = height * aspect
    return {"width": width, "height": height}


def image_transform(position, zoom: float, canvas):
    """
    position is {"x", "y"} as fractions of the canvas; zoom is a percentage.
    """
    return {
        "scale": zoom / 100,
        "translate_x": position.get("x", 0) * canvas["width"],
        "translate_y": position.get("y", 0) * canvas["height"],
    }


def layout_to_dict(layout: Layout):
    return {
        "id": layout.id,
        "name": layout.name,
        "description": layout.description,
        "total_width": layout.total_width,
        "total_height": layout.total_height,
        "panels": [p._asdict() for p in layout.panels],
        "boxes": panel_boxes(layout),
    }
