"""Pure operations on comment forests.

A forest is a tuple of ``CommentNode`` roots; each node's ``replies`` is
derived from ``parent_id`` back-references and is never stored. Nodes are
frozen, so every edit returns a new forest that shares all untouched
subtrees with the old one.
"""

from collections import defaultdict
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from uuid import UUID

from .models import ANONYMOUS_AUTHOR, Comment


TOMBSTONE = "[This comment has been deleted]"


@dataclass(frozen=True)
class CommentNode:
    """A comment as readers see it, with its direct replies."""

    id: UUID
    post_id: UUID
    content: str
    created_at: datetime
    parent_id: UUID | None = None
    author_id: UUID | None = None
    author_name: str = ANONYMOUS_AUTHOR
    is_moderated: bool = True
    is_deleted: bool = False
    reaction_count: int = 0
    liked_by_viewer: bool = False
    replies: tuple["CommentNode", ...] = ()

    @classmethod
    def from_comment(
        cls,
        comment: Comment,
        reaction_count: int = 0,
        liked_by_viewer: bool = False,
    ) -> "CommentNode":
        return cls(
            id=comment.comment_id,
            post_id=comment.post_id,
            content=comment.content,
            created_at=comment.created_at,
            parent_id=comment.parent_id,
            author_id=comment.author_id,
            author_name=comment.author_name,
            is_moderated=comment.is_moderated,
            is_deleted=comment.is_deleted,
            reaction_count=reaction_count,
            liked_by_viewer=liked_by_viewer,
        )

    @property
    def sort_key(self) -> tuple[datetime, str]:
        return (self.created_at, str(self.id))


Forest = tuple[CommentNode, ...]


def is_visible(node: Comment | CommentNode, viewer_id: UUID | None) -> bool:
    """Approved comments are public; pending ones only reach their author."""
    if node.is_moderated:
        return True
    return viewer_id is not None and node.author_id == viewer_id


def filter_visible(
    comments: Iterable[Comment], viewer_id: UUID | None
) -> list[Comment]:
    """Drop rows the viewer may not see, keeping input order.

    Applied per node before the tree is built, so a visible reply under an
    invisible parent surfaces as a root.
    """
    return [c for c in comments if is_visible(c, viewer_id)]


def assemble_forest(
    nodes: Mapping[UUID, CommentNode],
    children: Mapping[UUID | None, Sequence[UUID]],
) -> Forest:
    """Nest flat nodes following a parent -> ordered child ids index.

    ``children[None]`` lists the roots. Every node in ``nodes`` appears
    exactly once in the result: nodes unreachable from a root (a parent
    cycle) are promoted to roots.
    """
    visited: set[UUID] = set()
    roots: list[CommentNode] = []

    def assemble(root_id: UUID) -> CommentNode:
        built: dict[UUID, CommentNode] = {}
        stack: list[tuple[UUID, bool]] = [(root_id, False)]
        while stack:
            node_id, expanded = stack.pop()
            if expanded:
                replies = tuple(
                    built.pop(child_id)
                    for child_id in children.get(node_id, ())
                    if child_id in built
                )
                built[node_id] = replace(nodes[node_id], replies=replies)
                continue
            if node_id in visited:
                continue
            visited.add(node_id)
            stack.append((node_id, True))
            for child_id in reversed(children.get(node_id, ())):
                if child_id in nodes and child_id not in visited:
                    stack.append((child_id, False))
        return built[root_id]

    for root_id in children.get(None, ()):
        if root_id in nodes and root_id not in visited:
            roots.append(assemble(root_id))

    stranded = [n for n in nodes.values() if n.id not in visited]
    if stranded:
        for node in sorted(stranded, key=lambda n: n.sort_key):
            if node.id not in visited:
                roots.append(assemble(node.id))
        roots.sort(key=lambda n: n.sort_key)

    return tuple(roots)


def build_comment_tree(flat: Iterable[CommentNode]) -> Forest:
    """Build the forest from a flat list of nodes.

    Siblings are ordered by ``(created_at, id)``. A node whose parent is
    missing from the list (or is itself) becomes a root.
    """
    ordered = sorted(flat, key=lambda n: n.sort_key)
    nodes = {n.id: n for n in ordered}
    children: dict[UUID | None, list[UUID]] = defaultdict(list)
    for node in ordered:
        parent_id = node.parent_id
        if parent_id is None or parent_id == node.id or parent_id not in nodes:
            parent_id = None
        children[parent_id].append(node.id)
    return assemble_forest(nodes, children)


def iter_forest(forest: Forest) -> Iterator[CommentNode]:
    """Depth-first pre-order walk in sibling order."""
    stack = list(reversed(forest))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.replies))


def _find_path(forest: Forest, comment_id: UUID) -> list[int] | None:
    stack: list[tuple[Forest, list[int]]] = [(forest, [])]
    while stack:
        level, prefix = stack.pop()
        for index, node in enumerate(level):
            path = [*prefix, index]
            if node.id == comment_id:
                return path
            if node.replies:
                stack.append((node.replies, path))
    return None


def find_comment(forest: Forest, comment_id: UUID) -> CommentNode | None:
    """Locate a node at any depth."""
    path = _find_path(forest, comment_id)
    if path is None:
        return None
    node = forest[path[0]]
    for index in path[1:]:
        node = node.replies[index]
    return node


def _replace_at(level: Forest, path: Sequence[int], update) -> Forest:
    # Copies only the nodes along ``path``
    index = path[0]
    node = level[index]
    if len(path) == 1:
        new_node = update(node)
    else:
        new_node = replace(node, replies=_replace_at(node.replies, path[1:], update))
    return level[:index] + (new_node,) + level[index + 1 :]


def insert_reply(
    forest: Forest, parent_id: UUID | None, node: CommentNode
) -> Forest:
    """Return a forest with ``node`` appended under ``parent_id``.

    The parent may sit at any depth. Without a parent, or when the parent
    is not in the forest, the node is appended as a root.
    """
    path = _find_path(forest, parent_id) if parent_id is not None else None
    if path is None:
        return (*forest, node)
    return _replace_at(
        forest, path, lambda parent: replace(parent, replies=(*parent.replies, node))
    )


def soft_delete(
    forest: Forest, comment_id: UUID, tombstone: str = TOMBSTONE
) -> Forest:
    """Return a forest where ``comment_id`` shows the tombstone text.

    The node keeps its id, position and replies. Deleting an already
    deleted or unknown comment returns the forest unchanged.
    """
    path = _find_path(forest, comment_id)
    if path is None:
        return forest

    target = find_comment(forest, comment_id)
    if target is not None and target.is_deleted and target.content == tombstone:
        return forest

    return _replace_at(
        forest,
        path,
        lambda n: replace(n, content=tombstone, is_deleted=True),
    )
