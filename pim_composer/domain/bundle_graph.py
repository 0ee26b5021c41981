"""Bundle component graph algorithms.

The bundle graph has one directed edge ``bundle -> component`` per
BundleComponent row. A component may itself be a bundle, but the graph
must stay acyclic. Traversals here are iterative and bounded by a
visited set or an explicit depth limit, so malformed data cannot make
them loop or exhaust the stack.
"""

from collections import deque
from collections.abc import Iterable, Mapping, Sequence

from pim_composer.domain.exceptions import BundleDepthExceededError, CyclicBundleError

# bundle_id -> [(component_id, quantity), ...]
Adjacency = Mapping[str, Sequence[tuple[str, int]]]

DEFAULT_MAX_DEPTH = 32


def build_adjacency(edges: Iterable[tuple[str, str, int]]) -> dict[str, list[tuple[str, int]]]:
    """Build an adjacency view from ``(bundle_id, component_id, quantity)`` rows.

    Args:
        edges: Component rows.

    Returns:
        Mapping of bundle ID to its outgoing edges.
    """
    adjacency: dict[str, list[tuple[str, int]]] = {}
    for bundle_id, component_id, quantity in edges:
        adjacency.setdefault(bundle_id, []).append((component_id, quantity))
    return adjacency


def find_cycle(adjacency: Adjacency, bundle_id: str, component_id: str) -> list[str] | None:
    """Find the cycle that edge ``bundle_id -> component_id`` would close.

    Runs a breadth-first search from the component over the existing
    edges. If the search reaches the bundle, the new edge closes a cycle.

    Args:
        adjacency: Current component edges.
        bundle_id: Bundle being edited.
        component_id: Candidate component.

    Returns:
        Path ``[bundle, component, ..., bundle]`` if a cycle would form,
        None otherwise.
    """
    if component_id == bundle_id:
        return [bundle_id, bundle_id]

    parents: dict[str, str | None] = {component_id: None}
    queue: deque[str] = deque([component_id])

    while queue:
        node = queue.popleft()
        for child, _quantity in adjacency.get(node, ()):
            if child == bundle_id:
                path = [bundle_id]
                cursor: str | None = node
                trail: list[str] = []
                while cursor is not None:
                    trail.append(cursor)
                    cursor = parents[cursor]
                path.extend(reversed(trail))
                path.append(bundle_id)
                return path
            if child not in parents:
                parents[child] = node
                queue.append(child)

    return None


def ensure_acyclic(adjacency: Adjacency, bundle_id: str, component_ids: Iterable[str]) -> None:
    """Raise if any of ``component_ids`` would close a cycle through the bundle.

    Args:
        adjacency: Component edges, excluding the bundle's own new edges.
        bundle_id: Bundle being edited.
        component_ids: Components about to be attached.

    Raises:
        CyclicBundleError: On the first component that closes a cycle.
    """
    for component_id in component_ids:
        path = find_cycle(adjacency, bundle_id, component_id)
        if path is not None:
            raise CyclicBundleError(bundle_id, component_id, path)


def explode(
    bundle_id: str,
    adjacency: Adjacency,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, int]:
    """Flatten a bundle into the leaf products one unit of it consumes.

    Quantities multiply along each path and add up across paths, so a
    leaf reachable through two sub-bundles is counted once with the
    combined amount. A node with no outgoing edges is a leaf.

    Args:
        bundle_id: Root bundle.
        adjacency: Component edges.
        max_depth: Maximum nesting depth to follow.

    Returns:
        Mapping of leaf product ID to units consumed per bundle.

    Raises:
        CyclicBundleError: If the stored graph already contains a cycle.
        BundleDepthExceededError: If nesting exceeds ``max_depth``.
    """
    leaves: dict[str, int] = {}
    stack: list[tuple[str, int, tuple[str, ...]]] = [(bundle_id, 1, (bundle_id,))]

    while stack:
        node, multiplier, path = stack.pop()
        for child, quantity in adjacency.get(node, ()):
            if child in path:
                raise CyclicBundleError(node, child, [*path, child])
            amount = multiplier * quantity
            if adjacency.get(child):
                if len(path) > max_depth:
                    raise BundleDepthExceededError(bundle_id, max_depth)
                stack.append((child, amount, (*path, child)))
            else:
                leaves[child] = leaves.get(child, 0) + amount

    return leaves
