"""
Mindmap Diagram Model.

A mindmap is a small graph of labelled nodes joined by edges. The editor
works on the node-graph form ({nodes, edges}), and content is persisted
as diagram-library element data ({elements, appState, files}) in the
'excalidraw_data' field of a mindmap.

This module provides:
- Node, Edge and Diagram with the editor operations (add, rename,
  recolor, move, resize, delete, connect, disconnect)
- Conversion between the node-graph form and element data, both ways
- apply_operation() used by the editor's JSON endpoint
- render_svg() for read-only display and SVG export
"""

import json
import logging
import random
import re
import time
from dataclasses import dataclass, field
from html import escape
from typing import Any, Callable, Dict, List, Optional, Tuple


logger = logging.getLogger(__name__)


NODE_CIRCLE = 'circle'
NODE_RECT = 'rect'
NODE_DIAMOND = 'diamond'
NODE_TEXT = 'text'

NODE_TYPES = [NODE_CIRCLE, NODE_RECT, NODE_DIAMOND, NODE_TEXT]

EDGE_TYPES = ['default', 'straight', 'step', 'smoothstep']

DEFAULT_COLOR = '#fff'
DEFAULT_LABEL = 'New Node'
DEFAULT_TEXT_LABEL = 'New Text'

# Toolbar swatches
PALETTE = {
    'green': '#22c55e',
    'blue': '#3b82f6',
    'yellow': '#facc15',
    'red': '#f43f5e',
    'white': '#fff',
}

# Width, height per node type in the element format
NODE_SIZES = {
    NODE_CIRCLE: (80, 80),
    NODE_RECT: (100, 50),
    NODE_DIAMOND: (100, 50),
    NODE_TEXT: (100, 50),
}

MIN_NODE_WIDTH = 40
MIN_NODE_HEIGHT = 30
MAX_LABEL_LENGTH = 200

# Offset of a child node from the node it was added under
CHILD_OFFSET = (100, 50)
# Arrows start at this offset from the source node's position
ARROW_ANCHOR = (50, 25)
# Label elements sit at this offset inside their shape
LABEL_OFFSET = (10, 15)
LABEL_SIZE = (80, 20)

_HEX_COLOR = re.compile(r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$')

# Element type -> node type
_ELEMENT_NODE_TYPES = {
    'ellipse': NODE_CIRCLE,
    'rectangle': NODE_RECT,
    'diamond': NODE_DIAMOND,
    'text': NODE_TEXT,
}


class DiagramError(ValueError):
    """Raised for invalid diagram data or an invalid editor operation."""
    pass


@dataclass
class Node:
    id: str
    type: str = NODE_CIRCLE
    label: str = DEFAULT_LABEL
    color: str = DEFAULT_COLOR
    x: float = 0
    y: float = 0
    width: Optional[float] = None
    height: Optional[float] = None

    @property
    def size(self) -> Tuple[float, float]:
        default_w, default_h = NODE_SIZES.get(self.type, NODE_SIZES[NODE_RECT])
        return (self.width or default_w, self.height or default_h)

    @property
    def center(self) -> Tuple[float, float]:
        w, h = self.size
        return (self.x + w / 2, self.y + h / 2)

    def to_flow(self) -> Dict[str, Any]:
        node = {
            'id': self.id,
            'type': self.type,
            'data': {'label': self.label, 'color': self.color},
            'position': {'x': self.x, 'y': self.y},
            'draggable': True,
        }
        if self.width is not None:
            node['width'] = self.width
        if self.height is not None:
            node['height'] = self.height
        return node

    @classmethod
    def from_flow(cls, data: Dict[str, Any]) -> 'Node':
        if not isinstance(data, dict) or not data.get('id'):
            raise DiagramError('Every node needs an id')
        node_type = data.get('type') or NODE_RECT
        if node_type not in NODE_TYPES:
            node_type = NODE_RECT
        node_data = data.get('data') or {}
        position = data.get('position') or {}
        if not isinstance(node_data, dict) or not isinstance(position, dict):
            raise DiagramError(f"Node {data['id']} has malformed data or position")
        return cls(
            id=str(data['id']),
            type=node_type,
            label=str(node_data.get('label') or ''),
            color=_stored_color(node_data.get('color')),
            x=_number(position.get('x')),
            y=_number(position.get('y')),
            width=_optional_number(data.get('width')),
            height=_optional_number(data.get('height')),
        )


@dataclass
class Edge:
    id: str
    source: str
    target: str
    type: Optional[str] = None
    animated: bool = False

    def to_flow(self) -> Dict[str, Any]:
        edge: Dict[str, Any] = {'id': self.id, 'source': self.source, 'target': self.target}
        if self.type:
            edge['type'] = self.type
        if self.animated:
            edge['animated'] = True
        return edge

    @classmethod
    def from_flow(cls, data: Dict[str, Any]) -> 'Edge':
        if not isinstance(data, dict) or not data.get('source') or not data.get('target'):
            raise DiagramError('Every edge needs a source and a target')
        source, target = str(data['source']), str(data['target'])
        edge_type = data.get('type')
        return cls(
            id=str(data.get('id') or f'e{source}-{target}'),
            source=source,
            target=target,
            type=edge_type if edge_type in EDGE_TYPES and edge_type != 'default' else None,
            animated=bool(data.get('animated')),
        )


def _number(value: Any, default: float = 0) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _optional_number(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class Diagram:
    """An editable mindmap graph."""

    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    @classmethod
    def default(cls) -> 'Diagram':
        """The starting diagram for a new mindmap: one central node."""
        return cls(nodes=[Node(id='1', type=NODE_CIRCLE, label='Central Node',
                               color=DEFAULT_COLOR, x=400, y=100)])

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> Node:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise DiagramError(f'Node not found: {node_id}')

    def has_node(self, node_id: str) -> bool:
        return any(node.id == node_id for node in self.nodes)

    def edges_of(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.source == node_id or e.target == node_id]

    def _next_id(self, prefix: str = '') -> str:
        taken = {node.id for node in self.nodes}
        n = len(self.nodes) + 1
        while f'{prefix}{n}' in taken:
            n += 1
        return f'{prefix}{n}'

    def _free_position(self) -> Tuple[float, float]:
        """Place unattached nodes in a row below the existing ones."""
        if not self.nodes:
            return (400.0, 100.0)
        lowest = max(node.y + node.size[1] for node in self.nodes)
        leftmost = min(node.x for node in self.nodes)
        return (leftmost, lowest + 60)

    # ------------------------------------------------------------------
    # Editor operations
    # ------------------------------------------------------------------

    def add_node(self, node_type: str = NODE_CIRCLE, label: Optional[str] = None,
                 parent_id: Optional[str] = None, x: Optional[float] = None,
                 y: Optional[float] = None, color: str = DEFAULT_COLOR) -> Node:
        """
        Add a node.

        When parent_id is given the node is placed next to that node and
        an edge from the parent is added. Text nodes get 'text-N' ids.
        """
        if node_type not in NODE_TYPES:
            raise DiagramError(f'Unknown node type: {node_type}')
        if label is None or not str(label).strip():
            label = DEFAULT_TEXT_LABEL if node_type == NODE_TEXT else DEFAULT_LABEL
        label = _clean_label(label)
        color = _clean_color(color)

        parent = self.get_node(parent_id) if parent_id else None
        if x is None or y is None:
            if parent is not None:
                siblings = sum(1 for e in self.edges if e.source == parent.id)
                x = parent.x + CHILD_OFFSET[0]
                y = parent.y + CHILD_OFFSET[1] + siblings * 60
            else:
                x, y = self._free_position()

        node = Node(
            id=self._next_id('text-' if node_type == NODE_TEXT else ''),
            type=node_type,
            label=label,
            color=color,
            x=float(x),
            y=float(y),
        )
        self.nodes.append(node)
        if parent is not None:
            self.connect(parent.id, node.id)
        return node

    def rename_node(self, node_id: str, label: str) -> Node:
        node = self.get_node(node_id)
        if label is None or not str(label).strip():
            raise DiagramError('Label cannot be empty')
        node.label = _clean_label(label)
        return node

    def recolor_node(self, node_id: str, color: str) -> Node:
        node = self.get_node(node_id)
        node.color = _clean_color(color)
        return node

    def move_node(self, node_id: str, x: float, y: float) -> Node:
        node = self.get_node(node_id)
        if _optional_number(x) is None or _optional_number(y) is None:
            raise DiagramError('Moving a node needs numeric x and y')
        node.x = float(x)
        node.y = float(y)
        return node

    def resize_node(self, node_id: str, width: float, height: float) -> Node:
        node = self.get_node(node_id)
        node.width = max(MIN_NODE_WIDTH, _number(width, MIN_NODE_WIDTH))
        node.height = max(MIN_NODE_HEIGHT, _number(height, MIN_NODE_HEIGHT))
        return node

    def delete_node(self, node_id: str) -> Node:
        """Remove a node together with every edge touching it."""
        node = self.get_node(node_id)
        self.nodes = [n for n in self.nodes if n.id != node_id]
        self.edges = [e for e in self.edges if e.source != node_id and e.target != node_id]
        return node

    def connect(self, source: str, target: str, edge_type: Optional[str] = None) -> Edge:
        if source == target:
            raise DiagramError('A node cannot be connected to itself')
        self.get_node(source)
        self.get_node(target)
        for edge in self.edges:
            if edge.source == source and edge.target == target:
                raise DiagramError('These nodes are already connected')
        if edge_type is not None and edge_type not in EDGE_TYPES:
            raise DiagramError(f'Unknown edge type: {edge_type}')

        edge_id = f'e{source}-{target}'
        taken = {e.id for e in self.edges}
        suffix = 1
        while edge_id in taken:
            suffix += 1
            edge_id = f'e{source}-{target}-{suffix}'

        edge = Edge(id=edge_id, source=source, target=target,
                    type=edge_type if edge_type != 'default' else None)
        self.edges.append(edge)
        return edge

    def disconnect(self, edge_id: str) -> Edge:
        for edge in self.edges:
            if edge.id == edge_id:
                self.edges.remove(edge)
                return edge
        raise DiagramError(f'Edge not found: {edge_id}')

    # ------------------------------------------------------------------
    # Node-graph form
    # ------------------------------------------------------------------

    def to_flow(self) -> Dict[str, Any]:
        return {
            'nodes': [node.to_flow() for node in self.nodes],
            'edges': [edge.to_flow() for edge in self.edges],
        }

    @classmethod
    def from_flow(cls, data: Dict[str, Any]) -> 'Diagram':
        nodes = [Node.from_flow(n) for n in data.get('nodes') or []]
        ids = {node.id for node in nodes}
        if len(ids) != len(nodes):
            raise DiagramError('Node ids must be unique')
        edges = []
        for raw in data.get('edges') or []:
            edge = Edge.from_flow(raw)
            # Dangling edges are dropped, as the graph library does
            if edge.source in ids and edge.target in ids:
                edges.append(edge)
        return cls(nodes=nodes, edges=edges)

    # ------------------------------------------------------------------
    # Element form
    # ------------------------------------------------------------------

    def to_elements(self) -> List[Dict[str, Any]]:
        """
        Convert to diagram-library elements.

        Shapes: circle -> ellipse 80x80, rect -> rectangle 100x50,
        diamond -> diamond 100x50, text -> text 100x50. Every non-text
        node also gets a '<id>-text' label element, and every edge
        becomes an arrow starting at the source's anchor point.
        """
        elements: List[Dict[str, Any]] = []
        by_id = {node.id: node for node in self.nodes}

        for node in self.nodes:
            base = _base_element(node.id, node.x, node.y, node.color)
            if node.type == NODE_CIRCLE:
                shape = dict(base, type='ellipse', width=80, height=80, roundness={'type': 2})
            elif node.type == NODE_DIAMOND:
                shape = dict(base, type='diamond', width=100, height=50, roundness={'type': 3})
            elif node.type == NODE_TEXT:
                shape = dict(base, **_text_fields(node.label, 'center', 'middle'),
                             type='text', width=100, height=50)
            else:
                shape = dict(base, type='rectangle', width=100, height=50, roundness=None)
            if node.width is not None and node.height is not None:
                shape['width'], shape['height'] = node.width, node.height
            elements.append(shape)

            if node.type != NODE_TEXT:
                label = _base_element(f'{node.id}-text', node.x + LABEL_OFFSET[0],
                                      node.y + LABEL_OFFSET[1], node.color)
                label.update(_text_fields(node.label, 'left', 'top'))
                label.update(type='text', width=LABEL_SIZE[0], height=LABEL_SIZE[1])
                elements.append(label)

        for edge in self.edges:
            source, target = by_id.get(edge.source), by_id.get(edge.target)
            if source is None or target is None:
                continue
            dx, dy = target.x - source.x, target.y - source.y
            arrow = _base_element(edge.id, source.x + ARROW_ANCHOR[0],
                                  source.y + ARROW_ANCHOR[1], source.color)
            arrow.update(
                type='arrow',
                width=dx,
                height=dy,
                points=[[0, 0], [dx, dy]],
                strokeColor='#000',
                roundness={'type': 2},
                startBinding={'elementId': source.id},
                endBinding={'elementId': target.id},
                lastCommittedPoint=None,
                startArrowhead=None,
                endArrowhead='arrow',
                elbowed=False,
            )
            elements.append(arrow)

        return elements

    def to_excalidraw(self, app_state: Optional[Dict[str, Any]] = None,
                      files: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """The persisted 'excalidraw_data' payload."""
        return {
            'elements': self.to_elements(),
            'appState': dict(app_state or {}),
            'files': dict(files or {}),
        }

    @classmethod
    def from_elements(cls, elements: List[Dict[str, Any]]) -> 'Diagram':
        """
        Rebuild nodes and edges from element data.

        Shapes become nodes, '<id>-text' elements become their shape's
        label, free text elements become text nodes and arrows become
        edges. Arrows are matched to nodes by their bindings, falling back
        to the anchor point the converter uses. Other element kinds
        (freehand lines, images) have no node-graph equivalent and are
        skipped.
        """
        live = [e for e in elements or [] if isinstance(e, dict) and not e.get('isDeleted')]
        labels = {}
        for element in live:
            element_id = str(element.get('id') or '')
            if element.get('type') == 'text' and element_id.endswith('-text'):
                labels[element_id[:-len('-text')]] = element.get('text') or ''
            elif element.get('type') == 'text' and element.get('containerId'):
                labels[str(element['containerId'])] = element.get('text') or ''

        shape_ids = _shape_ids(live)
        nodes: List[Node] = []
        for element in live:
            element_id = str(element.get('id') or '')
            node_type = _ELEMENT_NODE_TYPES.get(element.get('type'))
            if node_type is None or not element_id:
                continue
            if node_type == NODE_TEXT:
                is_label = element_id.endswith('-text') and element_id[:-len('-text')] in shape_ids
                if is_label or element.get('containerId'):
                    continue
            label = element.get('text') if node_type == NODE_TEXT else labels.get(element_id, '')
            width, height = _number(element.get('width')), _number(element.get('height'))
            default_w, default_h = NODE_SIZES[node_type]
            nodes.append(Node(
                id=element_id,
                type=node_type,
                label=str(label or ''),
                color=_stored_color(element.get('strokeColor')),
                x=_number(element.get('x')),
                y=_number(element.get('y')),
                width=width if width and width != default_w else None,
                height=height if height and height != default_h else None,
            ))
        # A resized node keeps both dimensions
        for node in nodes:
            if (node.width is None) != (node.height is None):
                default_w, default_h = NODE_SIZES[node.type]
                node.width = node.width or default_w
                node.height = node.height or default_h

        diagram = cls(nodes=nodes)
        for element in live:
            if element.get('type') != 'arrow':
                continue
            source, target = _arrow_endpoints(element, diagram)
            if source and target and source != target:
                edge_id = str(element.get('id') or f'e{source}-{target}')
                if not any(e.id == edge_id for e in diagram.edges):
                    diagram.edges.append(Edge(id=edge_id, source=source, target=target))
        return diagram

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def from_data(cls, data: Any) -> 'Diagram':
        """
        Load a diagram from any stored form.

        Accepts None (new diagram), a JSON string, {nodes, edges}, or
        element data {elements, appState, files}.
        """
        if data is None or data == '' or data == {}:
            return cls.default()
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except ValueError as e:
                raise DiagramError(f'Diagram data is not valid JSON: {e}')
        if not isinstance(data, dict):
            raise DiagramError('Diagram data must be an object')
        if 'nodes' in data:
            return cls.from_flow(data)
        if 'elements' in data:
            return cls.from_elements(data.get('elements') or [])
        raise DiagramError('Diagram data has neither nodes nor elements')


def _shape_ids(elements: List[Dict[str, Any]]) -> set:
    return {
        str(e.get('id')) for e in elements
        if e.get('type') in ('ellipse', 'rectangle', 'diamond')
    }


def _arrow_endpoints(element: Dict[str, Any], diagram: Diagram) -> Tuple[Optional[str], Optional[str]]:
    def bound(key: str) -> Optional[str]:
        binding = element.get(key) or {}
        node_id = binding.get('elementId') if isinstance(binding, dict) else None
        return node_id if node_id and diagram.has_node(node_id) else None

    source, target = bound('startBinding'), bound('endBinding')
    if source and target:
        return source, target

    x, y = _number(element.get('x')), _number(element.get('y'))
    points = element.get('points') or [[0, 0]]
    try:
        end_dx, end_dy = _number(points[-1][0]), _number(points[-1][1])
    except (IndexError, TypeError):
        end_dx, end_dy = 0, 0

    start = (x - ARROW_ANCHOR[0], y - ARROW_ANCHOR[1])
    source = source or _node_near(diagram, start)
    if target is None and source:
        src = diagram.get_node(source)
        target = _node_near(diagram, (src.x + end_dx, src.y + end_dy), exclude=source)
    return source, target


def _node_near(diagram: Diagram, point: Tuple[float, float], exclude: Optional[str] = None,
               tolerance: float = 1.0) -> Optional[str]:
    for node in diagram.nodes:
        if node.id == exclude:
            continue
        if abs(node.x - point[0]) <= tolerance and abs(node.y - point[1]) <= tolerance:
            return node.id
    return None


def _stored_color(color: Any) -> str:
    """Color read from saved data; anything but a non-empty string is the default."""
    if isinstance(color, str) and color.strip():
        return color.strip()
    return DEFAULT_COLOR


def _clean_label(label: Any) -> str:
    return ' '.join(str(label).split())[:MAX_LABEL_LENGTH]


def _clean_color(color: Any) -> str:
    if isinstance(color, str):
        color = PALETTE.get(color, color)
    if not isinstance(color, str) or not _HEX_COLOR.match(color):
        raise DiagramError(f'Invalid color: {color}')
    return color


def _base_element(element_id: str, x: float, y: float, color: str) -> Dict[str, Any]:
    return {
        'id': element_id,
        'x': x,
        'y': y,
        'strokeColor': color or '#000000',
        'backgroundColor': 'transparent',
        'fillStyle': 'solid',
        'strokeWidth': 2,
        'strokeStyle': 'solid',
        'roughness': 1,
        'opacity': 100,
        'groupIds': [],
        'seed': random.randint(0, 999999),
        'angle': 0,
        'boundElements': None,
        'updated': int(time.time() * 1000),
        'isDeleted': False,
        'version': 1,
        'versionNonce': random.randint(0, 999999),
        'index': 'a0',
        'frameId': None,
        'link': None,
        'locked': False,
        'roundness': None,
    }


def _text_fields(text: str, align: str, vertical: str) -> Dict[str, Any]:
    return {
        'text': text,
        'originalText': text,
        'fontSize': 14,
        'fontFamily': 1,
        'textAlign': align,
        'verticalAlign': vertical,
        'containerId': None,
        'autoResize': True,
        'lineHeight': 1.25,
    }


# ============================================================================
# Editor operations endpoint
# ============================================================================

def _op_add_node(diagram: Diagram, args: Dict[str, Any]):
    return diagram.add_node(
        node_type=args.get('type', NODE_CIRCLE),
        label=args.get('label'),
        parent_id=args.get('parent_id') or None,
        x=args.get('x'),
        y=args.get('y'),
        color=args.get('color', DEFAULT_COLOR),
    )


OPERATIONS: Dict[str, Callable[[Diagram, Dict[str, Any]], Any]] = {
    'add_node': _op_add_node,
    'rename_node': lambda d, a: d.rename_node(a.get('node_id'), a.get('label')),
    'recolor_node': lambda d, a: d.recolor_node(a.get('node_id'), a.get('color')),
    'move_node': lambda d, a: d.move_node(a.get('node_id'), a.get('x'), a.get('y')),
    'resize_node': lambda d, a: d.resize_node(a.get('node_id'), a.get('width'), a.get('height')),
    'delete_node': lambda d, a: d.delete_node(a.get('node_id')),
    'connect': lambda d, a: d.connect(a.get('source'), a.get('target'), a.get('edge_type')),
    'disconnect': lambda d, a: d.disconnect(a.get('edge_id')),
}


def apply_operation(diagram: Diagram, op: str, args: Optional[Dict[str, Any]] = None) -> Diagram:
    """
    Apply one named editor operation in place.

    Raises:
        DiagramError: unknown operation or invalid arguments
    """
    handler = OPERATIONS.get(op)
    if handler is None:
        raise DiagramError(f'Unknown operation: {op}')
    handler(diagram, args or {})
    logger.debug(f"Applied diagram operation {op}")
    return diagram


# ============================================================================
# SVG rendering
# ============================================================================

SVG_PADDING = 20


def _text_color(fill: str) -> str:
    """Black or white text, whichever reads better on the fill color."""
    value = fill.lstrip('#')
    if len(value) in (3, 4):
        value = ''.join(ch * 2 for ch in value[:3])
    try:
        r, g, b = int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)
    except ValueError:
        return '#000'
    return '#000' if (r * 299 + g * 587 + b * 114) / 1000 > 128 else '#fff'


def render_svg(diagram: Diagram, background: Optional[str] = None) -> str:
    """
    Render a diagram as a standalone SVG document.

    Used read-only in the content detail view and as the editor's
    export format.
    """
    if diagram.nodes:
        min_x = min(n.x for n in diagram.nodes) - SVG_PADDING
        min_y = min(n.y for n in diagram.nodes) - SVG_PADDING
        max_x = max(n.x + n.size[0] for n in diagram.nodes) + SVG_PADDING
        max_y = max(n.y + n.size[1] for n in diagram.nodes) + SVG_PADDING
    else:
        min_x, min_y, max_x, max_y = 0, 0, 200, 100
    width, height = max_x - min_x, max_y - min_y

    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" class="mindmap" '
        f'viewBox="{min_x:g} {min_y:g} {width:g} {height:g}" '
        f'width="{width:g}" height="{height:g}">',
        '<defs><marker id="arrowhead" markerWidth="10" markerHeight="7" refX="10" refY="3.5" '
        'orient="auto"><polygon points="0 0, 10 3.5, 0 7" fill="#94a3b8"/></marker></defs>',
    ]
    if background:
        parts.append(
            f'<rect x="{min_x:g}" y="{min_y:g}" width="{width:g}" height="{height:g}" '
            f'fill="{escape(background)}"/>'
        )

    by_id = {node.id: node for node in diagram.nodes}
    for edge in diagram.edges:
        source, target = by_id.get(edge.source), by_id.get(edge.target)
        if source is None or target is None:
            continue
        (x1, y1), (x2, y2) = source.center, target.center
        dash = ' stroke-dasharray="5,5"' if edge.animated else ''
        parts.append(
            f'<line class="edge" data-edge-id="{escape(edge.id)}" x1="{x1:g}" y1="{y1:g}" '
            f'x2="{x2:g}" y2="{y2:g}" stroke="#94a3b8" stroke-width="2"{dash} '
            f'marker-end="url(#arrowhead)"/>'
        )

    for node in diagram.nodes:
        w, h = node.size
        cx, cy = node.center
        color = escape(node.color)
        parts.append(f'<g class="node node-{node.type}" data-node-id="{escape(node.id)}">')
        if node.type == NODE_CIRCLE:
            parts.append(
                f'<ellipse cx="{cx:g}" cy="{cy:g}" rx="{w / 2:g}" ry="{h / 2:g}" '
                f'fill="{color}" stroke="#ccc" stroke-width="2"/>'
            )
        elif node.type == NODE_DIAMOND:
            points = f'{cx:g},{node.y:g} {node.x + w:g},{cy:g} {cx:g},{node.y + h:g} {node.x:g},{cy:g}'
            parts.append(f'<polygon points="{points}" fill="{color}" stroke="#ccc" stroke-width="2"/>')
        elif node.type == NODE_RECT:
            parts.append(
                f'<rect x="{node.x:g}" y="{node.y:g}" width="{w:g}" height="{h:g}" rx="6" '
                f'fill="{color}" stroke="#ccc" stroke-width="2"/>'
            )
        if node.type == NODE_TEXT:
            text_fill = color if node.color != DEFAULT_COLOR else '#1e293b'
        else:
            text_fill = _text_color(node.color)
        parts.append(
            f'<text x="{cx:g}" y="{cy:g}" text-anchor="middle" dominant-baseline="middle" '
            f'font-family="sans-serif" font-size="14" fill="{text_fill}">{escape(node.label)}</text>'
        )
        parts.append('</g>')

    parts.append('</svg>')
    return ''.join(parts)
