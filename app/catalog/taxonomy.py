"""Category tree helpers.

Categories are stored with a materialized path of ids (``"1/4/9"``) and a
depth. These helpers derive and rebase those values; the admin gateway is
the only caller and the only writer of ``path``/``depth``.
"""

from dataclasses import dataclass

PATH_SEPARATOR = "/"


@dataclass(frozen=True)
class TreePosition:
    """Derived location of a category in the tree.

    Attributes:
        path: Materialized id path, root first.
        depth: Number of ancestors (0 for roots).
    """

    path: str
    depth: int


def derive_position(category_id: int, parent: TreePosition | None) -> TreePosition:
    """Compute path and depth of a category under ``parent``.

    Args:
        category_id: Id of the category being placed.
        parent: Position of the parent, None for a root.

    Returns:
        TreePosition of the category.
    """
    if parent is None:
        return TreePosition(path=str(category_id), depth=0)
    return TreePosition(
        path=f"{parent.path}{PATH_SEPARATOR}{category_id}",
        depth=parent.depth + 1,
    )


def is_within(path: str, ancestor_path: str) -> bool:
    """Check whether ``path`` equals or lies below ``ancestor_path``."""
    return path == ancestor_path or path.startswith(ancestor_path + PATH_SEPARATOR)


def descendant_prefix(path: str) -> str:
    """Prefix shared by every strict descendant of ``path``."""
    return path + PATH_SEPARATOR


def rebase(
    descendant: TreePosition,
    old_root: TreePosition,
    new_root: TreePosition,
) -> TreePosition:
    """Move a descendant along with its moved ancestor.

    Args:
        descendant: Current position of a strict descendant of ``old_root``.
        old_root: Ancestor position before the move.
        new_root: Ancestor position after the move.

    Returns:
        Descendant position after the move.

    Raises:
        ValueError: If ``descendant`` is not below ``old_root``.
    """
    prefix = descendant_prefix(old_root.path)
    if not descendant.path.startswith(prefix):
        raise ValueError(f"{descendant.path} is not below {old_root.path}")
    return TreePosition(
        path=new_root.path + descendant.path[len(old_root.path):],
        depth=descendant.depth - old_root.depth + new_root.depth,
    )
