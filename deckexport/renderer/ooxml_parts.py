"""OOXML part generators for a picture-per-slide presentation package.

Every function here is pure: parameters in, XML text out. Part names and
relationship ids are derived from the same helpers everywhere, so slide
``n`` always lives at ``ppt/slides/slide{n}.xml`` with its picture at
``ppt/media/image{n}.png`` and is referenced from the presentation as
``rId{2 + n}``.

Relationship ids inside ``presentation.xml.rels``:

- ``rId1`` slide master
- ``rId2`` theme
- ``rId{3 + i}`` slide ``i + 1`` (``i`` is the 0-based slide index)
"""

from typing import Any, Optional

from lxml import etree
from pptx.opc.constants import CONTENT_TYPE as CT
from pptx.opc.constants import RELATIONSHIP_TYPE as RT

from deckexport.renderer.units import to_emu


# ============================================================================
# Namespaces
# ============================================================================

NSMAP = {
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "p": "http://schemas.openxmlformats.org/presentationml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
}
CONTENT_TYPES_NS = "http://schemas.openxmlformats.org/package/2006/content-types"
PACKAGE_RELS_NS = "http://schemas.openxmlformats.org/package/2006/relationships"

# ============================================================================
# Fixed ids
# ============================================================================

MASTER_REL_ID = "rId1"
THEME_REL_ID = "rId2"
FIRST_SLIDE_REL_NUMBER = 3
FIRST_SLIDE_ID = 256
SLIDE_MASTER_ID = 2147483648
SLIDE_LAYOUT_ID = 2147483649
SLIDE_IMAGE_REL_ID = "rId1"

# Notes page size (portrait letter), unused but required by the schema
NOTES_WIDTH_EMU = 6858000
NOTES_HEIGHT_EMU = 9144000

# ============================================================================
# Part names
# ============================================================================

CONTENT_TYPES_PART = "[Content_Types].xml"
PACKAGE_RELS_PART = "_rels/.rels"
PRESENTATION_PART = "ppt/presentation.xml"
PRESENTATION_RELS_PART = "ppt/_rels/presentation.xml.rels"
SLIDE_MASTER_PART = "ppt/slideMasters/slideMaster1.xml"
SLIDE_MASTER_RELS_PART = "ppt/slideMasters/_rels/slideMaster1.xml.rels"
SLIDE_LAYOUT_PART = "ppt/slideLayouts/slideLayout1.xml"
SLIDE_LAYOUT_RELS_PART = "ppt/slideLayouts/_rels/slideLayout1.xml.rels"
THEME_PART = "ppt/theme/theme1.xml"


def slide_partname(number: int) -> str:
    """Part name of 1-based slide ``number``."""
    return f"ppt/slides/slide{number}.xml"


def slide_rels_partname(number: int) -> str:
    """Part name of the relationships of 1-based slide ``number``."""
    return f"ppt/slides/_rels/slide{number}.xml.rels"


def media_partname(number: int) -> str:
    """Part name of the picture of 1-based slide ``number``."""
    return f"ppt/media/image{number}.png"


def slide_rel_id(index: int) -> str:
    """Presentation-level relationship id of 0-based slide ``index``."""
    return f"rId{FIRST_SLIDE_REL_NUMBER + index}"


def slide_id(index: int) -> int:
    """Numeric ``p:sldId/@id`` of 0-based slide ``index``."""
    return FIRST_SLIDE_ID + index


# ============================================================================
# XML helpers
# ============================================================================


def _qn(tag: str) -> str:
    """Clark notation for a prefixed tag such as ``p:sld``."""
    prefix, local = tag.split(":")
    return f"{{{NSMAP[prefix]}}}{local}"


def _attrib(attrib: Optional[dict[str, Any]]) -> dict[str, str]:
    return {
        (_qn(key) if ":" in key else key): str(value)
        for key, value in (attrib or {}).items()
    }


def _root(tag: str, attrib: Optional[dict[str, Any]] = None, prefixes: str = "apr") -> etree._Element:
    nsmap = {prefix: NSMAP[prefix] for prefix in prefixes}
    return etree.Element(_qn(tag), _attrib(attrib), nsmap=nsmap)


def _sub(parent: etree._Element, tag: str, attrib: Optional[dict[str, Any]] = None) -> etree._Element:
    return etree.SubElement(parent, _qn(tag), _attrib(attrib))


def _serialize(root: etree._Element) -> str:
    return etree.tostring(
        root,
        xml_declaration=True,
        encoding="UTF-8",
        standalone=True,
    ).decode("utf-8")


def _relationships(entries: list[tuple[str, str, str]]) -> str:
    """Build a relationships part from ``(id, type, target)`` triples."""
    root = etree.Element(f"{{{PACKAGE_RELS_NS}}}Relationships", nsmap={None: PACKAGE_RELS_NS})
    for rel_id, rel_type, target in entries:
        etree.SubElement(
            root,
            f"{{{PACKAGE_RELS_NS}}}Relationship",
            {"Id": rel_id, "Type": rel_type, "Target": target},
        )
    return _serialize(root)


def _empty_group_properties(sp_tree: etree._Element) -> None:
    """Add the ``nvGrpSpPr``/``grpSpPr`` header every shape tree starts with."""
    nv_grp = _sub(sp_tree, "p:nvGrpSpPr")
    _sub(nv_grp, "p:cNvPr", {"id": 1, "name": ""})
    _sub(nv_grp, "p:cNvGrpSpPr")
    _sub(nv_grp, "p:nvPr")
    grp_sp_pr = _sub(sp_tree, "p:grpSpPr")
    xfrm = _sub(grp_sp_pr, "a:xfrm")
    _sub(xfrm, "a:off", {"x": 0, "y": 0})
    _sub(xfrm, "a:ext", {"cx": 0, "cy": 0})
    _sub(xfrm, "a:chOff", {"x": 0, "y": 0})
    _sub(xfrm, "a:chExt", {"cx": 0, "cy": 0})


def _level_paragraph_properties(parent: etree._Element, size: int = 1800) -> None:
    """First-level paragraph defaults shared by the text style lists."""
    lvl1 = _sub(parent, "a:lvl1pPr", {
        "marL": 0,
        "algn": "l",
        "defTabSz": 914400,
        "rtl": 0,
        "eaLnBrk": 1,
        "latinLnBrk": 0,
        "hangingPunct": 1,
    })
    def_rpr = _sub(lvl1, "a:defRPr", {"sz": size, "kern": 1200})
    fill = _sub(def_rpr, "a:solidFill")
    _sub(fill, "a:schemeClr", {"val": "tx1"})
    _sub(def_rpr, "a:latin", {"typeface": "+mn-lt"})
    _sub(def_rpr, "a:ea", {"typeface": "+mn-ea"})
    _sub(def_rpr, "a:cs", {"typeface": "+mn-cs"})


# ============================================================================
# Package-level parts
# ============================================================================


def content_types_xml(slide_count: int) -> str:
    """``[Content_Types].xml`` with one override per slide part."""
    root = etree.Element(f"{{{CONTENT_TYPES_NS}}}Types", nsmap={None: CONTENT_TYPES_NS})

    defaults = [
        ("xml", CT.XML),
        ("rels", CT.OPC_RELATIONSHIPS),
        ("jpeg", CT.JPEG),
        ("png", CT.PNG),
    ]
    for extension, content_type in defaults:
        etree.SubElement(
            root,
            f"{{{CONTENT_TYPES_NS}}}Default",
            {"Extension": extension, "ContentType": content_type},
        )

    overrides = [
        (PRESENTATION_PART, CT.PML_PRESENTATION_MAIN),
        (SLIDE_MASTER_PART, CT.PML_SLIDE_MASTER),
        (SLIDE_LAYOUT_PART, CT.PML_SLIDE_LAYOUT),
        (THEME_PART, CT.OFC_THEME),
    ]
    overrides += [(slide_partname(i + 1), CT.PML_SLIDE) for i in range(slide_count)]
    for partname, content_type in overrides:
        etree.SubElement(
            root,
            f"{{{CONTENT_TYPES_NS}}}Override",
            {"PartName": f"/{partname}", "ContentType": content_type},
        )

    return _serialize(root)


def package_rels_xml() -> str:
    """``_rels/.rels``: the package root points at the presentation part."""
    return _relationships([("rId1", RT.OFFICE_DOCUMENT, PRESENTATION_PART)])


# ============================================================================
# Presentation
# ============================================================================


def presentation_xml(slide_count: int, width_px: float, height_px: float) -> str:
    """``ppt/presentation.xml`` listing ``slide_count`` slides.

    Args:
        slide_count: Number of slides (0 yields an empty slide id list).
        width_px: Slide width in pixels.
        height_px: Slide height in pixels.
    """
    root = _root("p:presentation")

    master_list = _sub(root, "p:sldMasterIdLst")
    _sub(master_list, "p:sldMasterId", {"id": SLIDE_MASTER_ID, "r:id": MASTER_REL_ID})

    slide_list = _sub(root, "p:sldIdLst")
    for index in range(slide_count):
        _sub(slide_list, "p:sldId", {"id": slide_id(index), "r:id": slide_rel_id(index)})

    _sub(root, "p:sldSz", {"cx": int(to_emu(width_px)), "cy": int(to_emu(height_px)), "type": "custom"})
    _sub(root, "p:notesSz", {"cx": NOTES_WIDTH_EMU, "cy": NOTES_HEIGHT_EMU})

    text_style = _sub(root, "p:defaultTextStyle")
    def_ppr = _sub(text_style, "a:defPPr")
    _sub(def_ppr, "a:defRPr", {"lang": "en-US"})
    _level_paragraph_properties(text_style)

    return _serialize(root)


def presentation_rels_xml(slide_count: int) -> str:
    """``ppt/_rels/presentation.xml.rels``: master, theme, then every slide."""
    entries = [
        (MASTER_REL_ID, RT.SLIDE_MASTER, "slideMasters/slideMaster1.xml"),
        (THEME_REL_ID, RT.THEME, "theme/theme1.xml"),
    ]
    entries += [
        (slide_rel_id(i), RT.SLIDE, f"slides/slide{i + 1}.xml")
        for i in range(slide_count)
    ]
    return _relationships(entries)


# ============================================================================
# Slides
# ============================================================================


def slide_xml(image_rel_id: str, width_px: float, height_px: float) -> str:
    """A slide holding a single full-bleed picture.

    The relationship id is scoped to the slide's own ``.rels`` part, so every
    slide may use the same literal id.
    """
    root = _root("p:sld")
    c_sld = _sub(root, "p:cSld")
    sp_tree = _sub(c_sld, "p:spTree")
    _empty_group_properties(sp_tree)

    pic = _sub(sp_tree, "p:pic")
    nv_pic_pr = _sub(pic, "p:nvPicPr")
    _sub(nv_pic_pr, "p:cNvPr", {"id": 2, "name": "Slide Image"})
    c_nv_pic_pr = _sub(nv_pic_pr, "p:cNvPicPr")
    _sub(c_nv_pic_pr, "a:picLocks", {"noChangeAspect": 1})
    _sub(nv_pic_pr, "p:nvPr")

    blip_fill = _sub(pic, "p:blipFill")
    _sub(blip_fill, "a:blip", {"r:embed": image_rel_id})
    stretch = _sub(blip_fill, "a:stretch")
    _sub(stretch, "a:fillRect")

    sp_pr = _sub(pic, "p:spPr")
    xfrm = _sub(sp_pr, "a:xfrm")
    _sub(xfrm, "a:off", {"x": 0, "y": 0})
    _sub(xfrm, "a:ext", {"cx": int(to_emu(width_px)), "cy": int(to_emu(height_px))})
    geom = _sub(sp_pr, "a:prstGeom", {"prst": "rect"})
    _sub(geom, "a:avLst")

    clr_map_ovr = _sub(root, "p:clrMapOvr")
    _sub(clr_map_ovr, "a:masterClrMapping")

    return _serialize(root)


def slide_layout_rel_id(image_rel_id: str) -> str:
    """Lowest ``rId{n}`` not already taken by the slide picture."""
    number = 1
    while f"rId{number}" == image_rel_id:
        number += 1
    return f"rId{number}"


def slide_rels_xml(image_rel_id: str, image_index: int) -> str:
    """Relationships of one slide: its picture and the shared layout."""
    return _relationships([
        (image_rel_id, RT.IMAGE, f"../media/image{int(image_index)}.png"),
        (slide_layout_rel_id(image_rel_id), RT.SLIDE_LAYOUT, "../slideLayouts/slideLayout1.xml"),
    ])


# ============================================================================
# Master, layout, theme
# ============================================================================


def slide_master_xml() -> str:
    """Minimal slide master with one blank layout."""
    root = _root("p:sldMaster")
    c_sld = _sub(root, "p:cSld")
    bg = _sub(c_sld, "p:bg")
    bg_ref = _sub(bg, "p:bgRef", {"idx": 1001})
    _sub(bg_ref, "a:schemeClr", {"val": "bg1"})
    sp_tree = _sub(c_sld, "p:spTree")
    _empty_group_properties(sp_tree)

    _sub(root, "p:clrMap", {
        "bg1": "lt1",
        "tx1": "dk1",
        "bg2": "lt2",
        "tx2": "dk2",
        "accent1": "accent1",
        "accent2": "accent2",
        "accent3": "accent3",
        "accent4": "accent4",
        "accent5": "accent5",
        "accent6": "accent6",
        "hlink": "hlink",
        "folHlink": "folHlink",
    })

    layout_list = _sub(root, "p:sldLayoutIdLst")
    _sub(layout_list, "p:sldLayoutId", {"id": SLIDE_LAYOUT_ID, "r:id": "rId1"})

    tx_styles = _sub(root, "p:txStyles")
    _level_paragraph_properties(_sub(tx_styles, "p:titleStyle"), size=4400)
    _level_paragraph_properties(_sub(tx_styles, "p:bodyStyle"), size=2800)
    _level_paragraph_properties(_sub(tx_styles, "p:otherStyle"))

    return _serialize(root)


def slide_master_rels_xml() -> str:
    """Master relationships: its layout and the theme."""
    return _relationships([
        ("rId1", RT.SLIDE_LAYOUT, "../slideLayouts/slideLayout1.xml"),
        ("rId2", RT.THEME, "../theme/theme1.xml"),
    ])


def slide_layout_xml() -> str:
    """Blank slide layout."""
    root = _root("p:sldLayout", {"type": "blank", "preserve": 1})
    c_sld = _sub(root, "p:cSld", {"name": "Blank"})
    sp_tree = _sub(c_sld, "p:spTree")
    _empty_group_properties(sp_tree)
    clr_map_ovr = _sub(root, "p:clrMapOvr")
    _sub(clr_map_ovr, "a:masterClrMapping")
    return _serialize(root)


def slide_layout_rels_xml() -> str:
    """Layout relationships: back to the master."""
    return _relationships([
        ("rId1", RT.SLIDE_MASTER, "../slideMasters/slideMaster1.xml"),
    ])


# Office 2007 default palette
THEME_COLORS = [
    ("dk1", "sysClr", {"val": "windowText", "lastClr": "000000"}),
    ("lt1", "sysClr", {"val": "window", "lastClr": "FFFFFF"}),
    ("dk2", "srgbClr", {"val": "1F497D"}),
    ("lt2", "srgbClr", {"val": "EEECE1"}),
    ("accent1", "srgbClr", {"val": "4F81BD"}),
    ("accent2", "srgbClr", {"val": "C0504D"}),
    ("accent3", "srgbClr", {"val": "9BBB59"}),
    ("accent4", "srgbClr", {"val": "8064A2"}),
    ("accent5", "srgbClr", {"val": "4BACC6"}),
    ("accent6", "srgbClr", {"val": "F79646"}),
    ("hlink", "srgbClr", {"val": "0000FF"}),
    ("folHlink", "srgbClr", {"val": "800080"}),
]
THEME_FONT = "Calibri"
LINE_WIDTHS_EMU = (9525, 25400, 38100)


def _scheme_fill(parent: etree._Element) -> None:
    fill = _sub(parent, "a:solidFill")
    _sub(fill, "a:schemeClr", {"val": "phClr"})


def theme_xml() -> str:
    """Office-style theme: colours, fonts and the three-entry style lists."""
    root = _root("a:theme", {"name": "Office Theme"}, prefixes="a")
    elements = _sub(root, "a:themeElements")

    clr_scheme = _sub(elements, "a:clrScheme", {"name": "Office"})
    for slot, kind, attrib in THEME_COLORS:
        _sub(_sub(clr_scheme, f"a:{slot}"), f"a:{kind}", attrib)

    font_scheme = _sub(elements, "a:fontScheme", {"name": "Office"})
    for group in ("a:majorFont", "a:minorFont"):
        font = _sub(font_scheme, group)
        _sub(font, "a:latin", {"typeface": THEME_FONT})
        _sub(font, "a:ea", {"typeface": ""})
        _sub(font, "a:cs", {"typeface": ""})

    fmt_scheme = _sub(elements, "a:fmtScheme", {"name": "Office"})

    fill_styles = _sub(fmt_scheme, "a:fillStyleLst")
    for _ in range(3):
        _scheme_fill(fill_styles)

    line_styles = _sub(fmt_scheme, "a:lnStyleLst")
    for width in LINE_WIDTHS_EMU:
        line = _sub(line_styles, "a:ln", {"w": width, "cap": "flat", "cmpd": "sng", "algn": "ctr"})
        _scheme_fill(line)
        _sub(line, "a:prstDash", {"val": "solid"})

    effect_styles = _sub(fmt_scheme, "a:effectStyleLst")
    for _ in range(3):
        effect = _sub(effect_styles, "a:effectStyle")
        _sub(effect, "a:effectLst")

    bg_fill_styles = _sub(fmt_scheme, "a:bgFillStyleLst")
    for _ in range(3):
        _scheme_fill(bg_fill_styles)

    return _serialize(root)
