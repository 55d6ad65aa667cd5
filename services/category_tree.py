import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from models.category import Category
from schemas.category import CategoryNode, CategoryOut

logger = logging.getLogger(__name__)

MAX_TREE_DEPTH = 64


def build_category_tree(categories: Sequence[Category]) -> List[CategoryNode]:
    """
    Nest a flat category list under its parents.

    Roots are the records with ``parent_id`` NULL. Children keep the order of
    the input. Records whose parent is missing from the input are not
    reachable and are left out; each id is emitted at most once and nesting
    stops at MAX_TREE_DEPTH, so corrupted parent chains cannot recurse forever.
    """
    by_parent: Dict[Optional[int], List[Category]] = defaultdict(list)
    for category in categories:
        by_parent[category.parent_id].append(category)

    visited: set = set()

    def _children_of(parent_id: Optional[int], depth: int) -> List[CategoryNode]:
        nodes = []
        for category in by_parent.get(parent_id, []):
            if category.id in visited:
                logger.warning("Category %s reached twice while building tree", category.id)
                continue
            visited.add(category.id)
            node = CategoryNode.model_validate(category)
            if depth < MAX_TREE_DEPTH:
                node.children = _children_of(category.id, depth + 1)
            elif by_parent.get(category.id):
                logger.warning("Category tree deeper than %s levels, truncated at %s", MAX_TREE_DEPTH, category.id)
            nodes.append(node)
        return nodes

    return _children_of(None, 1)


def flatten_category_tree(nodes: Iterable[CategoryNode]) -> List[CategoryOut]:
    """Pre-order traversal of a forest."""
    flat: List[CategoryOut] = []
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        flat.append(CategoryOut.model_validate(node.model_dump()))
        stack.extend(reversed(node.children))
    return flat
