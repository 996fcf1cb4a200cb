"""Category hierarchy builder.

Reconstructs a forest of parent/child trees from the flat category
collection, where each category only stores its parent reference.

Example:
    1 Electronics
        4 Smartphones
            8 iPhone
        5 Laptops
    2 Fashion
"""

from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field

import structlog

from storefront.domain.entities import Category
from storefront.domain.exceptions import HierarchyIntegrityError

logger = structlog.get_logger()


@dataclass
class TreeNode:
    """A category with its ordered children.

    Attributes:
        category: The wrapped category.
        children: Child nodes ordered by position, then id.
        depth: Distance from the root of this tree (0 for roots).
    """

    category: Category
    children: list["TreeNode"] = field(default_factory=list)
    depth: int = 0

    def walk(self) -> Iterator["TreeNode"]:
        """Iterate over this node and its descendants depth-first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    @property
    def descendant_count(self) -> int:
        """Count nodes below this one."""
        return sum(1 for _ in self.walk()) - 1


def iter_forest(forest: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Iterate over every node of a forest depth-first."""
    for root in forest:
        yield from root.walk()


def sibling_order(category: Category) -> tuple[int, int]:
    """Sort key ordering siblings by position, then id."""
    return (category.position, category.id)


class CategoryTreeBuilder:
    """Builds category forests.

    Roots are categories without a parent or whose parent is not part
    of the input. Categories caught in a parent cycle are unreachable
    from any root; they are reported and then promoted to roots so every
    input category appears exactly once, unless ``strict`` is set, in
    which case HierarchyIntegrityError is raised.

    Example usage:
        builder = CategoryTreeBuilder()
        forest = builder.build(store.categories())
        for node in iter_forest(forest):
            print("  " * node.depth + node.category.name)
    """

    def __init__(self, strict: bool = False) -> None:
        """Initialize builder.

        Args:
            strict: Raise instead of recovering when a cycle is found.
        """
        self.strict = strict

    def build(self, categories: Iterable[Category]) -> list[TreeNode]:
        """Build the forest.

        Args:
            categories: Flat category collection.

        Returns:
            Root nodes ordered by position, then id; recovered cycle
            members follow the regular roots.

        Raises:
            HierarchyIntegrityError: If strict and a cycle exists.
        """
        ordered = sorted(categories, key=sibling_order)
        known_ids = {category.id for category in ordered}

        roots: list[Category] = []
        children: dict[int, list[Category]] = defaultdict(list)
        for category in ordered:
            if category.parent_id is None or category.parent_id not in known_ids:
                roots.append(category)
            else:
                children[category.parent_id].append(category)

        visited: set[int] = set()
        forest = [self._descend(root, children, visited) for root in roots]

        stranded = [category for category in ordered if category.id not in visited]
        if stranded:
            cycle_ids = [category.id for category in stranded]
            if self.strict:
                raise HierarchyIntegrityError(cycle_ids)
            logger.error(
                "Category parent cycle detected",
                cycle_ids=cycle_ids,
            )
            for category in stranded:
                if category.id not in visited:
                    forest.append(self._descend(category, children, visited))

        return forest

    def _descend(
        self,
        root: Category,
        children: dict[int, list[Category]],
        visited: set[int],
    ) -> TreeNode:
        """Attach every not-yet-visited descendant of root.

        Args:
            root: Category at the top of this tree.
            children: Parent id to ordered child categories.
            visited: IDs already placed in the forest; updated in place.

        Returns:
            Root node of the built tree.
        """
        node = TreeNode(category=root)
        visited.add(root.id)
        stack = [node]
        while stack:
            current = stack.pop()
            for child in children.get(current.category.id, []):
                if child.id in visited:
                    continue
                visited.add(child.id)
                child_node = TreeNode(category=child, depth=current.depth + 1)
                current.children.append(child_node)
                stack.append(child_node)
        return node


def build_tree(categories: Iterable[Category], strict: bool = False) -> list[TreeNode]:
    """Build a category forest with a one-off builder."""
    return CategoryTreeBuilder(strict=strict).build(categories)


def filter_forest(
    forest: Iterable[TreeNode],
    keep: Callable[[Category], bool],
) -> list[TreeNode]:
    """Drop nodes failing ``keep`` together with their subtrees.

    Depths are left as built, so a kept node keeps its original depth.
    """
    return [
        TreeNode(
            category=node.category,
            children=filter_forest(node.children, keep),
            depth=node.depth,
        )
        for node in forest
        if keep(node.category)
    ]
