"""
Edmonds' blossom algorithm for maximum weight matching in general graphs.
"""

from __future__ import annotations

import sys
import math
from typing import Optional


class MatchingInputError(ValueError):
    """Raised when the input does not satisfy the constraints."""


class MalformedInputError(MatchingInputError, TypeError):
    """Raised when the edge list or an edge has the wrong structure."""


class InvalidVertexError(MatchingInputError):
    """Raised when an edge endpoint is not a non-negative integer."""


class InvalidWeightError(MatchingInputError):
    """Raised when an edge weight is not a finite number."""


class MatchingError(AssertionError):
    """Raised when the computed matching fails verification.

    This can only happen if there is a bug in the matching algorithm.
    """


def maximum_weight_matching(
        edges: list[tuple[int, int, int|float]],
        max_cardinality: bool = False
        ) -> list[int]:
    """Compute a maximum-weighted matching in the general undirected weighted
    graph given by "edges".

    The graph is specified as a list of edges, each edge specified as a tuple
    of its two vertices and the edge weight.
    The graph may be non-connected (i.e. contain multiple components).

    Vertices are indexed by consecutive, non-negative integers, such that
    the first vertex has index 0 and the last vertex has index (n-1).
    Vertex indices must be Python "int" values; floats such as 2.0 and
    other integer-like types are rejected.
    Edge weights may be integers or floating point numbers.
    Edge weights may be zero or negative.
    If any edge weight is a floating point number, all edge weights must
    fit comfortably in the floating point range.

    There should be at most one edge between any pair of vertices, and no
    vertex should have an edge to itself. Such edges are not rejected, but
    the result is undefined if they are present. Callers must remove
    self-edges and merge multi-edges beforehand.

    If "max_cardinality" is true, the function computes a matching with
    the largest possible number of matched vertices. Among all such
    matchings it returns one with maximum total weight. Negative-weight
    edges may then be part of the matching.

    This function takes time O(n**3), where "n" is the number of vertices.
    This function uses O(n + m) memory, where "m" is the number of edges.

    Parameters:
        edges: List or tuple of edges, each edge specified as a tuple or
            list "(x, y, w)" where "x" and "y" are vertex indices and "w"
            is the edge weight. Other sequence types are rejected.
        max_cardinality: True to compute a maximum-cardinality matching
            with maximum weight among all maximum-cardinality matchings.

    Returns:
        List "mate" of length "n", where "mate[x] == y" if vertex "x"
        is matched to vertex "y", and "mate[x] == -1" if vertex "x"
        is unmatched.

    Raises:
        MalformedInputError: If "edges" or one of its edges is malformed.
        InvalidVertexError: If an edge endpoint is not a valid vertex index.
        InvalidWeightError: If an edge weight is not a valid finite number.
    """

    # Check that the input meets all constraints.
    _check_input_types(edges)

    # Special case for empty graphs.
    if not edges:
        return []

    # Initialize graph representation.
    graph = _GraphInfo(edges)

    # Initialize trivial partial matching without any matched edges.
    matching = _PartialMatching(graph, max_cardinality)

    # Improve the solution until no further improvement is possible.
    #
    # Each successful stage increases the number of matched edges by 1.
    # This loop runs through at most "n" iterations.
    # Each iteration takes time O(n**2).
    for _stage in range(graph.num_vertex):
        if not _run_stage(matching):
            break

    # Verify that the matching is optimal.
    # This only works reliably for integer weights.
    # Verification is a redundant step; if the matching algorithm is correct,
    # verification will always pass.
    if graph.integer_weights:
        _verify_optimum(matching)

    # Translate matched endpoints into vertex indices.
    return [(graph.endpoint[p] if p != -1 else -1) for p in matching.mate]


def _check_input_types(edges: list[tuple[int, int, int|float]]) -> None:
    """Check that the input consists of valid data types and valid
    numerical ranges.

    This function takes time O(m).

    Parameters:
        edges: List of edges, each edge specified as a tuple "(x, y, w)"
            where "x" and "y" are vertex indices and "w" is the edge weight.

    Raises:
        MalformedInputError: If the structure of the input is invalid.
        InvalidVertexError: If a vertex index is invalid.
        InvalidWeightError: If an edge weight is invalid.
    """

    # Dual variables are sums and differences of a few edge weights.
    # Keep them well inside the valid floating point range.
    float_limit = sys.float_info.max / 4

    if not isinstance(edges, (list, tuple)):
        raise MalformedInputError('"edges" must be a list or tuple')

    for e in edges:
        if (not isinstance(e, (list, tuple))) or (len(e) != 3):
            raise MalformedInputError(
                "Each edge must be specified as a 3-tuple")

        (x, y, w) = e

        for v in (x, y):
            if (not isinstance(v, int)) or isinstance(v, bool):
                raise InvalidVertexError(
                    f"Edge endpoints must be integers, got {v!r}")
            if v < 0:
                raise InvalidVertexError(
                    f"Edge endpoints must be non-negative, got {v}")

        if (not isinstance(w, (int, float))) or isinstance(w, bool):
            raise InvalidWeightError(
                "Edge weights must be integers or floating point numbers")

        if isinstance(w, float):
            if not math.isfinite(w):
                raise InvalidWeightError("Edge weights must be finite numbers")

            if abs(w) > float_limit:
                raise InvalidWeightError(
                    "Floating point edge weights must be"
                    f" less than {float_limit:g} in magnitude")

    # Integer weights are unbounded, unless they get mixed with floating
    # point weights in the dual variables.
    if any(isinstance(w, float) for (_x, _y, w) in edges):
        for (_x, _y, w) in edges:
            if abs(w) > float_limit:
                raise InvalidWeightError(
                    "Edge weights must be less than"
                    f" {float_limit:g} in magnitude"
                    " when floating point weights are used")


class _GraphInfo:
    """Representation of the input graph.

    These data remain unchanged while the algorithm runs.
    """

    def __init__(self, edges: list[tuple[int, int, int|float]]) -> None:
        """Initialize the graph representation and prepare adjacency lists.

        This function takes time O(n + m).
        """

        # Vertices are indexed by integers in range 0 .. n-1.
        # Edges are indexed by integers in range 0 .. m-1.
        #
        # "edges[e] = (x, y, w)" where
        #     "e" is an edge index;
        #     "x" and "y" are vertex indices of the incident vertices;
        #     "w" is the edge weight.
        self.edges: list[tuple[int, int, int|float]] = [
            (x, y, w) for (x, y, w) in edges]

        # num_vertex = the number of vertices.
        if self.edges:
            self.num_vertex = 1 + max(max(x, y) for (x, y, _w) in self.edges)
        else:
            self.num_vertex = 0

        # Each edge has two endpoints, one at each incident vertex.
        # Endpoints are indexed by integers in range 0 .. 2*m-1.
        #
        # Edge "e" has endpoints "2*e" and "2*e+1", such that
        # "endpoint[2*e] = x" and "endpoint[2*e+1] = y" if "edges[e] = (x, y, w)".
        #
        # The opposite endpoint of endpoint "p" is "p ^ 1".
        # The edge that owns endpoint "p" is "p // 2".
        self.endpoint: list[int] = [
            self.edges[p // 2][p % 2] for p in range(2 * len(self.edges))]

        # "adjacent_endpoints[x]" is the list of remote endpoints of the edges
        # incident on vertex "x". For each such endpoint "p", the edge runs
        # from "x" to vertex "endpoint[p]".
        self.adjacent_endpoints: list[list[int]] = [
            [] for _x in range(self.num_vertex)]
        for (e, (x, y, _w)) in enumerate(self.edges):
            self.adjacent_endpoints[x].append(2 * e + 1)
            self.adjacent_endpoints[y].append(2 * e)

        # Vertex duals start at the maximum edge weight, such that every
        # edge initially has non-negative slack. Negative weights do not
        # lower the starting point below zero.
        self.max_weight: int|float = max(
            [0] + [w for (_x, _y, w) in self.edges])

        # Determine whether _all_ weights are integers.
        # In this case we can avoid floating point computations entirely.
        self.integer_weights: bool = all(isinstance(w, int)
                                         for (_x, _y, w) in self.edges)


class _PartialMatching:
    """Represents a partial solution of the matching problem.

    These data change while the algorithm runs, and persist
    from one stage to the next.
    """

    def __init__(self, graph: _GraphInfo, max_cardinality: bool) -> None:
        """Initialize a partial solution where all vertices are unmatched."""

        num_vertex = graph.num_vertex

        # Keep a reference to the graph for convenience.
        self.graph = graph

        # True to compute a maximum-cardinality matching.
        self.max_cardinality = max_cardinality

        # If vertex "x" is matched to vertex "y" via edge "e",
        # "mate[x]" is the endpoint of "e" at vertex "y".
        # Thus "endpoint[mate[x]] == y" and "mate[y] == mate[x] ^ 1".
        #
        # If vertex "x" is unmatched, "mate[x] == -1".
        #
        # Initially all vertices are unmatched.
        self.mate: list[int] = num_vertex * [-1]

        # Blossoms are indexed by integers in range 0 .. 2*n-1.
        #
        # Blossom indices in range 0 .. n-1 refer to the trivial blossoms
        # that consist of a single vertex. In this case the blossom index
        # is simply equal to the vertex index.
        #
        # Blossom indices in range n .. 2*n-1 refer to non-trivial blossoms.
        # These are created and destroyed while the algorithm runs.
        # At most n-1 non-trivial blossoms exist at the same time.
        #
        # List of currently unused blossom indices.
        self.unused_blossoms: list[int] = list(
            range(num_vertex, 2 * num_vertex))

        # "vertex_blossom[x]" is the index of the top-level blossom that
        # contains vertex "x".
        # "vertex_blossom[x] == x" if "x" is a trivial top-level blossom.
        #
        # Initially all vertices are top-level trivial blossoms.
        self.vertex_blossom: list[int] = list(range(num_vertex))

        # "blossom_parent[b]" is the index of the smallest blossom that
        # contains blossom "b", or
        # "blossom_parent[b] == -1" if blossom "b" is a top-level blossom.
        self.blossom_parent: list[int] = (2 * num_vertex) * [-1]

        # "blossom_base[b]" is the base vertex of blossom "b", or -1 if
        # blossom index "b" is currently unused.
        self.blossom_base: list[int] = (
            list(range(num_vertex)) + num_vertex * [-1])

        # "blossom_subblossoms[b]" is the list of sub-blossoms of
        # non-trivial blossom "b", ordered along the alternating cycle.
        # The first sub-blossom contains the base vertex.
        self.blossom_subblossoms: list[Optional[list[int]]] = (
            (2 * num_vertex) * [None])

        # "blossom_endpoints[b]" is the list of endpoints that link the
        # sub-blossoms of non-trivial blossom "b".
        #
        # "blossom_endpoints[b][i] = p" where edge "p // 2" connects
        # sub-blossom "i" to sub-blossom "i+1" (cyclically), such that
        # "endpoint[p]" lies in sub-blossom "i" and "endpoint[p ^ 1]"
        # lies in sub-blossom "i+1".
        self.blossom_endpoints: list[Optional[list[int]]] = (
            (2 * num_vertex) * [None])

        # Every vertex and every non-trivial blossom has a variable in
        # the dual LPP.
        #
        # "dual_var[x]" is 2 times the dual variable of vertex "x".
        # "dual_var[b]" is the dual variable of non-trivial blossom "b".
        # This scaling ensures that the values remain integers if all
        # edge weights are integers.
        #
        # Vertex duals start at the maximum edge weight.
        # Blossom duals start at 0.
        self.dual_var: list[int|float] = (
            num_vertex * [graph.max_weight] + num_vertex * [0])

    def edge_slack(self, e: int) -> int|float:
        """Return 2 times the slack of the edge with index "e".

        The result is only valid for edges that are not between vertices
        that belong to the same top-level blossom.
        """
        (x, y, w) = self.graph.edges[e]
        return self.dual_var[x] + self.dual_var[y] - 2 * w

    def blossom_vertices(self, b: int) -> list[int]:
        """Return a list of vertex indices contained in blossom "b".

        Vertices are listed in depth-first order of the sub-blossoms.
        """
        num_vertex = self.graph.num_vertex
        if b < num_vertex:
            return [b]

        # Use an explicit stack to avoid deep recursion.
        stack: list[int] = [b]
        nodes: list[int] = []
        while stack:
            b = stack.pop()
            if b < num_vertex:
                nodes.append(b)
            else:
                subblossoms = self.blossom_subblossoms[b]
                assert subblossoms is not None
                stack.extend(reversed(subblossoms))
        return nodes


# Each vertex may be labeled "S" (outer) or "T" (inner) or be unlabeled.
_LABEL_NONE = 0
_LABEL_S = 1
_LABEL_T = 2


class _StageData:
    """Data structures that are used during a stage of the algorithm."""

    def __init__(self, graph: _GraphInfo) -> None:
        """Initialize data structures for a new stage."""

        num_vertex = graph.num_vertex

        # Top-level blossoms that are part of an alternating tree are
        # labeled S or T. Unlabeled top-level blossoms are not (yet)
        # part of any alternating tree.
        #
        # "label[b]" is the label of top-level blossom "b".
        # "label[x]" for a vertex "x" inside a non-trivial T-blossom is
        # the label of that vertex; it is T if the vertex is reachable
        # from an S-vertex via a tight edge.
        #
        # At the beginning of a stage, all blossoms are unlabeled.
        self.label: list[int] = (2 * num_vertex) * [_LABEL_NONE]

        # "label_end[b]" is the remote endpoint of the edge through which
        # blossom "b" obtained its label, or -1 if "b" is the root of an
        # alternating tree.
        self.label_end: list[int] = (2 * num_vertex) * [-1]

        # For each unlabeled vertex and T-vertex "x",
        # "best_edge[x]" is the edge index of the least-slack edge
        # between "x" and any S-vertex, or -1 if no such edge has been found.
        #
        # For each top-level S-blossom "b",
        # "best_edge[b]" is the edge index of the least-slack edge
        # to a different S-blossom, or -1 if no such edge has been found.
        self.best_edge: list[int] = (2 * num_vertex) * [-1]

        # For non-trivial top-level S-blossom "b",
        # "blossom_best_edges[b]" is a list of least-slack edges between
        # blossom "b" and other S-blossoms, with at most one edge to each
        # such blossom, or None if no list has been built.
        self.blossom_best_edges: list[Optional[list[int]]] = (
            (2 * num_vertex) * [None])

        # "allow_edge[e]" is True if edge "e" is known to have zero slack.
        # Once set, it remains set until the end of the stage.
        self.allow_edge: list[bool] = len(graph.edges) * [False]

        # A list of S-vertices to be scanned.
        # We call it a queue, but it is actually a stack.
        self.queue: list[int] = []


def _assign_label(
        matching: _PartialMatching,
        stage_data: _StageData,
        w: int,
        t: int,
        p: int
        ) -> None:
    """Assign label "t" to the top-level blossom that contains vertex "w".

    The blossom is attached to the alternating tree via endpoint "p",
    or becomes the root of a tree if "p == -1".

    A new S-blossom has all its vertices added to the queue.
    A new T-blossom immediately passes label S on to its mate.
    """

    b = matching.vertex_blossom[w]
    assert stage_data.label[w] == _LABEL_NONE
    assert stage_data.label[b] == _LABEL_NONE

    stage_data.label[w] = stage_data.label[b] = t
    stage_data.label_end[w] = stage_data.label_end[b] = p
    stage_data.best_edge[w] = stage_data.best_edge[b] = -1

    if t == _LABEL_S:
        # The blossom has become an S-blossom. Scan all its vertices.
        stage_data.queue.extend(matching.blossom_vertices(b))
    else:
        # The blossom has become a T-blossom. Its base vertex is matched,
        # and the mate of the base becomes an S-vertex.
        assert t == _LABEL_T
        base = matching.blossom_base[b]
        q = matching.mate[base]
        assert q != -1
        _assign_label(matching, stage_data,
                      matching.graph.endpoint[q], _LABEL_S, q ^ 1)


def _scan_blossom(
        matching: _PartialMatching,
        stage_data: _StageData,
        v: int,
        w: int
        ) -> int:
    """Trace back through the alternating trees from S-vertices "v" and "w".

    Alternate between the two paths, one tree edge pair at a time, so that
    the search time is bounded by the size of the newly found blossom.

    Returns:
        Base vertex of a new blossom if both vertices are part of the same
        alternating tree, or -1 if they are in different trees, in which
        case an augmenting path has been found.
    """

    endpoint = matching.graph.endpoint

    # Top-level blossoms visited during this scan.
    visited: set[int] = set()

    base = -1
    while v != -1 or w != -1:

        # Check if we reached a blossom already visited from the other side.
        b = matching.vertex_blossom[v]
        if b in visited:
            base = matching.blossom_base[b]
            break

        assert stage_data.label[b] == _LABEL_S
        visited.add(b)

        # Trace one step back through the T-blossom to the next S-blossom.
        if stage_data.label_end[b] == -1:
            # Reached the root of this alternating tree.
            v = -1
        else:
            v = endpoint[stage_data.label_end[b]]
            b = matching.vertex_blossom[v]
            assert stage_data.label[b] == _LABEL_T
            assert stage_data.label_end[b] >= 0
            v = endpoint[stage_data.label_end[b]]

        # Swap "v" and "w" to alternate between paths.
        if w != -1:
            (v, w) = (w, v)

    return base


def _add_blossom(
        matching: _PartialMatching,
        stage_data: _StageData,
        base: int,
        e: int
        ) -> None:
    """Construct a new blossom with the specified base vertex, closed by
    edge "e" between two S-blossoms of the same alternating tree.

    Assign label S to the new blossom.
    Former T-vertices in the blossom become S-vertices and are added to
    the queue.

    This function takes time O(n) per call, plus time for scanning the
    edges of trivial sub-blossoms.
    """

    graph = matching.graph
    endpoint = graph.endpoint
    num_vertex = graph.num_vertex

    (v, w, _wt) = graph.edges[e]
    bb = matching.vertex_blossom[base]
    bv = matching.vertex_blossom[v]
    bw = matching.vertex_blossom[w]

    # Create the new blossom.
    b = matching.unused_blossoms.pop()
    matching.blossom_base[b] = base
    matching.blossom_parent[b] = -1
    matching.blossom_parent[bb] = b

    # Make the list of sub-blossoms and their interconnecting edges,
    # starting from the base and walking around the cycle.
    path: list[int] = []
    endps: list[int] = []

    # Trace back from "v" to the base.
    while bv != bb:
        matching.blossom_parent[bv] = b
        path.append(bv)
        endps.append(stage_data.label_end[bv])
        assert stage_data.label_end[bv] >= 0
        bv = matching.vertex_blossom[endpoint[stage_data.label_end[bv]]]

    # Reverse the list to go from the base to "v",
    # then add the edge (v, w).
    path.append(bb)
    path.reverse()
    endps.reverse()
    endps.append(2 * e)

    # Trace back from "w" to the base.
    while bw != bb:
        matching.blossom_parent[bw] = b
        path.append(bw)
        endps.append(stage_data.label_end[bw] ^ 1)
        assert stage_data.label_end[bw] >= 0
        bw = matching.vertex_blossom[endpoint[stage_data.label_end[bw]]]

    # Any alternating cycle has odd length.
    assert len(path) % 2 == 1
    assert len(path) >= 3

    matching.blossom_subblossoms[b] = path
    matching.blossom_endpoints[b] = endps

    # Assign label S to the new blossom.
    assert stage_data.label[bb] == _LABEL_S
    stage_data.label[b] = _LABEL_S
    stage_data.label_end[b] = stage_data.label_end[bb]

    # New blossoms start with dual variable 0.
    matching.dual_var[b] = 0

    # Relabel vertices. Former T-vertices are now S-vertices.
    for x in matching.blossom_vertices(b):
        if stage_data.label[matching.vertex_blossom[x]] == _LABEL_T:
            stage_data.queue.append(x)
        matching.vertex_blossom[x] = b

    # Compute the least-slack edges to other S-blossoms.
    #
    # "best_edge_to[bx]" is the least-slack edge from the new blossom
    # to top-level S-blossom "bx", or -1.
    best_edge_to: list[int] = (2 * num_vertex) * [-1]
    for bv in path:
        edge_lists: list[list[int]]
        sub_best_edges = stage_data.blossom_best_edges[bv]
        if sub_best_edges is None:
            # This sub-blossom does not have a list of least-slack edges.
            # Get the information from its vertices instead.
            edge_lists = [
                [p // 2 for p in graph.adjacent_endpoints[x]]
                for x in matching.blossom_vertices(bv)]
        else:
            # Walk this sub-blossom's least-slack edges.
            edge_lists = [sub_best_edges]

        for edge_list in edge_lists:
            for k in edge_list:
                (i, j, _wt) = graph.edges[k]
                if matching.vertex_blossom[j] == b:
                    (i, j) = (j, i)
                bj = matching.vertex_blossom[j]
                if ((bj != b)
                        and (stage_data.label[bj] == _LABEL_S)
                        and ((best_edge_to[bj] == -1)
                             or (matching.edge_slack(k)
                                 < matching.edge_slack(best_edge_to[bj])))):
                    best_edge_to[bj] = k

        # Forget about least-slack edges of the sub-blossom.
        stage_data.blossom_best_edges[bv] = None
        stage_data.best_edge[bv] = -1

    best_edges = [k for k in best_edge_to if k != -1]
    stage_data.blossom_best_edges[b] = best_edges

    # Select the overall least-slack edge to any other S-blossom.
    best_edge = -1
    best_slack: int|float = 0
    for k in best_edges:
        slack = matching.edge_slack(k)
        if (best_edge == -1) or (slack < best_slack):
            best_edge = k
            best_slack = slack
    stage_data.best_edge[b] = best_edge


def _relabel_expanded_t_blossom(
        matching: _PartialMatching,
        stage_data: _StageData,
        b: int
        ) -> None:
    """Reconstruct the alternating tree through the sub-blossoms of
    T-blossom "b", which has just been expanded in the middle of a stage.

    Start at the sub-blossom through which the expanded blossom obtained
    its label, and relabel sub-blossoms until we reach the base.
    """

    endpoint = matching.graph.endpoint
    subblossoms = matching.blossom_subblossoms[b]
    endps = matching.blossom_endpoints[b]
    assert subblossoms is not None
    assert endps is not None

    # Figure out through which sub-blossom the expanding blossom
    # obtained its label initially.
    entry_child = matching.vertex_blossom[
        endpoint[stage_data.label_end[b] ^ 1]]

    # Decide in which direction we will go round the blossom.
    j = subblossoms.index(entry_child)
    if j & 1:
        # Start index is odd; go forward and wrap.
        j -= len(subblossoms)
        jstep = 1
        endptrick = 0
    else:
        # Start index is even; go backward.
        jstep = -1
        endptrick = 1

    # Move along the blossom until we get to the base.
    p = stage_data.label_end[b]
    while j != 0:
        # Relabel the T-sub-blossom.
        stage_data.label[endpoint[p ^ 1]] = _LABEL_NONE
        stage_data.label[
            endpoint[endps[j - endptrick] ^ endptrick ^ 1]] = _LABEL_NONE
        _assign_label(matching, stage_data, endpoint[p ^ 1], _LABEL_T, p)

        # Step to the next S-sub-blossom and note its forward endpoint.
        stage_data.allow_edge[endps[j - endptrick] // 2] = True
        j += jstep
        p = endps[j - endptrick] ^ endptrick

        # Step to the next T-sub-blossom.
        stage_data.allow_edge[p // 2] = True
        j += jstep

    # Relabel the base T-sub-blossom WITHOUT stepping through to
    # its mate (so don't call _assign_label).
    bv = subblossoms[j]
    stage_data.label[endpoint[p ^ 1]] = stage_data.label[bv] = _LABEL_T
    stage_data.label_end[endpoint[p ^ 1]] = stage_data.label_end[bv] = p
    stage_data.best_edge[bv] = -1

    # Continue along the blossom until we get back to the entry child.
    j += jstep
    while subblossoms[j] != entry_child:
        bv = subblossoms[j]

        if stage_data.label[bv] == _LABEL_S:
            # This sub-blossom just got label S through one of its
            # neighbours; leave it alone.
            j += jstep
            continue

        # Examine the vertices of the sub-blossom to see whether
        # it is reachable from a neighbouring S-vertex outside the
        # expanding blossom.
        x = -1
        for x in matching.blossom_vertices(bv):
            if stage_data.label[x] != _LABEL_NONE:
                break

        # If the sub-blossom contains a reachable vertex, assign
        # label T to the sub-blossom.
        if stage_data.label[x] != _LABEL_NONE:
            assert stage_data.label[x] == _LABEL_T
            assert matching.vertex_blossom[x] == bv
            stage_data.label[x] = _LABEL_NONE
            stage_data.label[
                endpoint[matching.mate[matching.blossom_base[bv]]]
                ] = _LABEL_NONE
            _assign_label(matching, stage_data,
                          x, _LABEL_T, stage_data.label_end[x])

        j += jstep


def _expand_blossom(
        matching: _PartialMatching,
        stage_data: _StageData,
        b: int,
        end_stage: bool
        ) -> None:
    """Expand the specified top-level blossom.

    During a stage, this is used to expand a T-blossom whose dual variable
    has dropped to zero. Its sub-blossoms are relabeled to reconstruct
    the alternating tree.

    At the end of a stage, this is used to expand S-blossoms with zero dual.
    In that case sub-blossoms with zero dual are expanded recursively.

    This function takes time O(n).
    """

    num_vertex = matching.graph.num_vertex

    # Use an explicit stack to avoid deep recursion.
    stack: list[int] = [b]

    while stack:
        b = stack.pop()
        assert b >= num_vertex
        subblossoms = matching.blossom_subblossoms[b]
        assert subblossoms is not None

        # Convert sub-blossoms into top-level blossoms.
        for s in subblossoms:
            matching.blossom_parent[s] = -1
            if s < num_vertex:
                matching.vertex_blossom[s] = s
            elif end_stage and (matching.dual_var[s] == 0):
                # Recursively expand this sub-blossom.
                stack.append(s)
            else:
                for x in matching.blossom_vertices(s):
                    matching.vertex_blossom[x] = s

        # If we expand a T-blossom during a stage, its sub-blossoms must be
        # relabeled.
        if (not end_stage) and (stage_data.label[b] == _LABEL_T):
            _relabel_expanded_t_blossom(matching, stage_data, b)

        # Recycle the blossom index.
        stage_data.label[b] = _LABEL_NONE
        stage_data.label_end[b] = -1
        stage_data.best_edge[b] = -1
        stage_data.blossom_best_edges[b] = None
        matching.blossom_subblossoms[b] = None
        matching.blossom_endpoints[b] = None
        matching.blossom_base[b] = -1
        matching.unused_blossoms.append(b)


def _expand_zero_dual_blossoms(
        matching: _PartialMatching,
        stage_data: _StageData
        ) -> None:
    """Expand all top-level S-blossoms with zero dual variable,
    recursively including sub-blossoms with zero dual.

    This function runs at the end of a stage in which the matching was
    augmented.
    """

    num_vertex = matching.graph.num_vertex

    for b in range(num_vertex, 2 * num_vertex):
        # Blossoms created after the most recent delta step have _exactly_
        # zero dual. So this comparison is reliable, even in case
        # of floating point edge weights.
        if ((matching.blossom_parent[b] == -1)
                and (matching.blossom_base[b] >= 0)
                and (stage_data.label[b] == _LABEL_S)
                and (matching.dual_var[b] == 0)):
            _expand_blossom(matching, stage_data, b, True)


def _augment_blossom(matching: _PartialMatching, b: int, v: int) -> None:
    """Augment along an alternating path through blossom "b", from vertex "v"
    to the base vertex of the blossom.

    Swap matched and unmatched edges along the path, and rotate the
    blossom such that vertex "v" becomes its new base vertex.

    This function takes time O(n).
    """

    num_vertex = matching.graph.num_vertex
    endpoint = matching.graph.endpoint

    # Use an explicit stack to avoid deep recursion.
    # Augmenting a sub-blossom does not depend on the state of its parent,
    # so the stacked work items may run in any order.
    stack: list[tuple[int, int]] = [(b, v)]

    while stack:
        (b, v) = stack.pop()

        subblossoms = matching.blossom_subblossoms[b]
        endps = matching.blossom_endpoints[b]
        assert subblossoms is not None
        assert endps is not None

        # Bubble up through the blossom tree from vertex "v" to an immediate
        # sub-blossom of "b".
        t = v
        while matching.blossom_parent[t] != b:
            t = matching.blossom_parent[t]

        # Deal with the first sub-blossom.
        if t >= num_vertex:
            stack.append((t, v))

        # Decide in which direction we will go round the blossom.
        i = j = subblossoms.index(t)
        if i & 1:
            # Start index is odd; go forward and wrap.
            j -= len(subblossoms)
            jstep = 1
            endptrick = 0
        else:
            # Start index is even; go backward.
            jstep = -1
            endptrick = 1

        # Move along the blossom until we get to the base.
        while j != 0:
            # Step to the next sub-blossom and augment it.
            j += jstep
            t = subblossoms[j]
            p = endps[j - endptrick] ^ endptrick
            if t >= num_vertex:
                stack.append((t, endpoint[p]))

            # Step to the next sub-blossom and augment it.
            j += jstep
            t = subblossoms[j]
            if t >= num_vertex:
                stack.append((t, endpoint[p ^ 1]))

            # Match the edge connecting those sub-blossoms.
            matching.mate[endpoint[p]] = p ^ 1
            matching.mate[endpoint[p ^ 1]] = p

        # Rotate the list of sub-blossoms to put the new base at the front.
        matching.blossom_subblossoms[b] = subblossoms[i:] + subblossoms[:i]
        matching.blossom_endpoints[b] = endps[i:] + endps[:i]
        matching.blossom_base[b] = v


def _augment_matching(
        matching: _PartialMatching,
        stage_data: _StageData,
        e: int
        ) -> None:
    """Augment the matching along the augmenting path through edge "e".

    Edge "e" links two S-vertices in different alternating trees.
    From each end of the edge, trace back to the root of the tree,
    swapping matched and unmatched edges as we go.

    This function takes time O(n).
    """

    graph = matching.graph
    endpoint = graph.endpoint
    num_vertex = graph.num_vertex

    (v, w, _wt) = graph.edges[e]

    for (s, p) in ((v, 2 * e + 1), (w, 2 * e)):
        # Match vertex "s" to remote endpoint "p".
        # Then trace back from "s" until we find a single vertex,
        # swapping matched and unmatched edges as we go.
        while True:
            bs = matching.vertex_blossom[s]
            assert stage_data.label[bs] == _LABEL_S
            assert (stage_data.label_end[bs]
                    == matching.mate[matching.blossom_base[bs]])

            # Augment through the S-blossom from "s" to base.
            if bs >= num_vertex:
                _augment_blossom(matching, bs, s)

            # Update "mate[s]".
            matching.mate[s] = p

            # Trace one step back.
            if stage_data.label_end[bs] == -1:
                # Reached single vertex; stop.
                break

            t = endpoint[stage_data.label_end[bs]]
            bt = matching.vertex_blossom[t]
            assert stage_data.label[bt] == _LABEL_T

            # Trace one more step back.
            assert stage_data.label_end[bt] >= 0
            s = endpoint[stage_data.label_end[bt]]
            j = endpoint[stage_data.label_end[bt] ^ 1]

            # Augment through the T-blossom from "j" to base.
            assert matching.blossom_base[bt] == t
            if bt >= num_vertex:
                _augment_blossom(matching, bt, j)

            # Update "mate[j]".
            matching.mate[j] = stage_data.label_end[bt]

            # Keep the opposite endpoint; it will be assigned to "mate[s]"
            # in the next step.
            p = stage_data.label_end[bt] ^ 1


def _substage_scan(matching: _PartialMatching, stage_data: _StageData) -> bool:
    """Scan queued S-vertices to expand the alternating trees.

    The scan proceeds until either an augmenting path is found,
    or the queue of S-vertices becomes empty.

    New blossoms may be created during the scan.
    If an augmenting path is found, the matching is augmented.

    Returns:
        True if the matching was augmented; otherwise False.
    """

    graph = matching.graph
    endpoint = graph.endpoint
    label = stage_data.label
    best_edge = stage_data.best_edge
    allow_edge = stage_data.allow_edge

    # Process S-vertices waiting to be scanned.
    while stage_data.queue:

        # Take a vertex from the queue.
        v = stage_data.queue.pop()
        assert label[matching.vertex_blossom[v]] == _LABEL_S

        # Scan its neighbours.
        for p in graph.adjacent_endpoints[v]:
            e = p // 2
            w = endpoint[p]

            # Note: blossom index of vertex "v" may change during
            # this loop, so we need to refresh it here.
            bv = matching.vertex_blossom[v]
            bw = matching.vertex_blossom[w]

            # Ignore edges that are internal to a blossom.
            if bv == bw:
                continue

            # Check whether this edge is tight (has zero slack).
            # Only tight edges may be part of an alternating tree.
            slack: int|float = 0
            if not allow_edge[e]:
                slack = matching.edge_slack(e)
                if slack <= 0:
                    allow_edge[e] = True

            if allow_edge[e]:
                if label[bw] == _LABEL_NONE:
                    # Label "w" with T, and label its mate with S.
                    _assign_label(matching, stage_data, w, _LABEL_T, p ^ 1)

                elif label[bw] == _LABEL_S:
                    # This edge connects two S-blossoms. Use it to find
                    # either a new blossom or an augmenting path.
                    base = _scan_blossom(matching, stage_data, v, w)
                    if base >= 0:
                        _add_blossom(matching, stage_data, base, e)
                    else:
                        _augment_matching(matching, stage_data, e)
                        return True

                elif label[w] == _LABEL_NONE:
                    # Vertex "w" is inside a T-blossom but has not yet been
                    # reached from outside the blossom. Mark it as reached;
                    # this matters if the T-blossom is expanded later.
                    assert label[bw] == _LABEL_T
                    label[w] = _LABEL_T
                    stage_data.label_end[w] = p ^ 1

            elif label[bw] == _LABEL_S:
                # Keep track of the least-slack edge between this S-blossom
                # and any other S-blossom.
                if (best_edge[bv] == -1
                        or slack < matching.edge_slack(best_edge[bv])):
                    best_edge[bv] = e

            elif label[w] == _LABEL_NONE:
                # Keep track of the least-slack edge between unlabeled
                # vertex "w" and any S-vertex.
                if (best_edge[w] == -1
                        or slack < matching.edge_slack(best_edge[w])):
                    best_edge[w] = e

    # No further S vertices to scan, and no augmenting path found.
    return False


def _calc_dual_delta(
        matching: _PartialMatching,
        stage_data: _StageData
        ) -> tuple[int, int|float, int, int]:
    """Calculate a delta step in the dual LPP problem.

    This function returns the minimum of the 4 types of delta values,
    and the type of delta which obtain the minimum, and the edge or
    blossom that produces the minimum delta, if applicable.

    The returned value is 2 times the actual delta value.

    This function takes time O(n).

    Returns:
        Tuple (delta_type, delta, delta_edge, delta_blossom).
    """

    graph = matching.graph
    num_vertex = graph.num_vertex
    label = stage_data.label
    best_edge = stage_data.best_edge

    delta_type = -1
    delta: int|float = 0
    delta_edge = -1
    delta_blossom = -1

    # Compute delta1: the minimum value of any vertex dual.
    if not matching.max_cardinality:
        delta_type = 1
        delta = min(matching.dual_var[:num_vertex])

    # Compute delta2: the minimum slack on any edge between
    # an S-vertex and a free vertex.
    for x in range(num_vertex):
        if (label[matching.vertex_blossom[x]] == _LABEL_NONE
                and best_edge[x] != -1):
            d = matching.edge_slack(best_edge[x])
            if delta_type == -1 or d < delta:
                delta = d
                delta_type = 2
                delta_edge = best_edge[x]

    # Compute delta3: half the minimum slack on any edge between
    # a pair of S-blossoms.
    for b in range(2 * num_vertex):
        if (matching.blossom_parent[b] == -1
                and label[b] == _LABEL_S
                and best_edge[b] != -1):
            slack = matching.edge_slack(best_edge[b])
            if graph.integer_weights:
                # The slack of any edge between two S-blossoms is an even
                # integer if all edge weights are integers.
                assert slack % 2 == 0
                d = slack // 2
            else:
                d = slack / 2
            if delta_type == -1 or d < delta:
                delta = d
                delta_type = 3
                delta_edge = best_edge[b]

    # Compute delta4: minimum dual variable of any T-blossom.
    for b in range(num_vertex, 2 * num_vertex):
        if (matching.blossom_base[b] >= 0
                and matching.blossom_parent[b] == -1
                and label[b] == _LABEL_T
                and (delta_type == -1 or matching.dual_var[b] < delta)):
            delta = matching.dual_var[b]
            delta_type = 4
            delta_blossom = b

    if delta_type == -1:
        # No further improvement possible; max-cardinality optimum
        # reached. Do a final delta update to make the optimum
        # verifiable.
        assert matching.max_cardinality
        delta_type = 1
        delta = max(0, min(matching.dual_var[:num_vertex]))

    return (delta_type, delta, delta_edge, delta_blossom)


def _apply_delta_step(
        matching: _PartialMatching,
        stage_data: _StageData,
        delta: int|float
        ) -> None:
    """Apply a delta step to the dual LPP variables."""

    num_vertex = matching.graph.num_vertex
    label = stage_data.label

    # Apply delta to dual variables of all vertices.
    for x in range(num_vertex):
        xlabel = label[matching.vertex_blossom[x]]
        if xlabel == _LABEL_S:
            # S-vertex: 2*u = 2*u - 2*delta
            matching.dual_var[x] -= delta
        elif xlabel == _LABEL_T:
            # T-vertex: 2*u = 2*u + 2*delta
            matching.dual_var[x] += delta

    # Apply delta to dual variables of top-level non-trivial blossoms.
    for b in range(num_vertex, 2 * num_vertex):
        if (matching.blossom_base[b] >= 0
                and matching.blossom_parent[b] == -1):
            if label[b] == _LABEL_S:
                # S-blossom: z = z + 2*delta
                matching.dual_var[b] += delta
            elif label[b] == _LABEL_T:
                # T-blossom: z = z - 2*delta
                matching.dual_var[b] -= delta


def _run_stage(matching: _PartialMatching) -> bool:
    """Run one stage of the matching algorithm.

    The stage searches a maximum-weight augmenting path.
    If this path is found, it is used to augment the matching,
    thereby increasing the number of matched edges by 1.
    If no such path is found, the matching must already be optimal.

    This function takes time O(n**2).

    Returns:
        True if the matching was successfully augmented.
        False if no further improvement is possible.
    """

    graph = matching.graph
    num_vertex = graph.num_vertex

    # Initialize stage data structures.
    # This removes all labels and forgets all least-slack edges.
    stage_data = _StageData(graph)

    # Label single blossoms/vertices with S and put them in the queue.
    for x in range(num_vertex):
        if (matching.mate[x] == -1
                and stage_data.label[matching.vertex_blossom[x]]
                == _LABEL_NONE):
            _assign_label(matching, stage_data, x, _LABEL_S, -1)

    # Stop if all vertices are matched.
    # No further improvement is possible in this case.
    if not stage_data.queue:
        return False

    # Each pass through the following loop is a "substage".
    # The substage tries to find an augmenting path. If such a path is found,
    # we augment the matching and end the stage. Otherwise we update the
    # dual LPP problem and enter the next substage.
    #
    # This loop runs through at most O(n) iterations per stage.
    augmented = False
    while True:

        # Scan to expand the alternating trees.
        # End the stage if an augmenting path is found.
        if _substage_scan(matching, stage_data):
            augmented = True
            break

        # Calculate delta step in the dual LPP problem.
        (delta_type, delta, delta_edge, delta_blossom
            ) = _calc_dual_delta(matching, stage_data)

        # Apply the delta step to the dual variables.
        _apply_delta_step(matching, stage_data, delta)

        if delta_type == 1:
            # No further improvement possible. End the stage.
            break

        elif delta_type == 2:
            # Use the least-slack edge to continue the search.
            stage_data.allow_edge[delta_edge] = True
            (x, y, _wt) = graph.edges[delta_edge]
            if stage_data.label[matching.vertex_blossom[x]] == _LABEL_NONE:
                (x, y) = (y, x)
            assert stage_data.label[matching.vertex_blossom[x]] == _LABEL_S
            stage_data.queue.append(x)

        elif delta_type == 3:
            # Use the least-slack edge to continue the search.
            stage_data.allow_edge[delta_edge] = True
            (x, _y, _wt) = graph.edges[delta_edge]
            assert stage_data.label[matching.vertex_blossom[x]] == _LABEL_S
            stage_data.queue.append(x)

        else:
            # Expand the least-z blossom.
            assert delta_type == 4
            _expand_blossom(matching, stage_data, delta_blossom, False)

    # At the end of a successful stage, expand all S-blossoms
    # which have dual variable zero.
    if augmented:
        _expand_zero_dual_blossoms(matching, stage_data)

    return augmented


def _verify_optimum(matching: _PartialMatching) -> None:
    """Verify that the optimum solution has been found.

    This function takes time O(m * n).

    Raises:
        MatchingError: If the solution is not optimal.
    """

    graph = matching.graph
    num_vertex = graph.num_vertex
    num_endpoint = len(graph.endpoint)
    endpoint = graph.endpoint
    mate = matching.mate
    dual_var = matching.dual_var
    blossom_parent = matching.blossom_parent

    # Double-check that each vertex is matched to at most one other vertex,
    # via an edge that actually exists in the graph.
    for x in range(num_vertex):
        p = mate[x]
        if p != -1:
            if (p < 0) or (p >= num_endpoint) or (endpoint[p ^ 1] != x):
                raise MatchingError(
                    f"Vertex {x} is matched via a non-incident endpoint {p}")
            if mate[endpoint[p]] != (p ^ 1):
                raise MatchingError(
                    f"Asymmetric matching for vertex {x}")

    # In max-cardinality mode, vertex duals may be negative.
    # Find a constant non-negative number to add to all vertex duals.
    if matching.max_cardinality:
        vertex_dual_offset = max(0, -min(dual_var[:num_vertex]))
    else:
        vertex_dual_offset = 0

    # Check that all dual variables are non-negative.
    if min(dual_var[:num_vertex]) + vertex_dual_offset < 0:
        raise MatchingError("Negative vertex dual")
    for b in range(num_vertex, 2 * num_vertex):
        if matching.blossom_base[b] >= 0 and dual_var[b] < 0:
            raise MatchingError(f"Negative dual for blossom {b}")

    # Check the slack of each edge.
    for (e, (x, y, w)) in enumerate(graph.edges):

        # Self-edges fall outside the input contract.
        if x == y:
            continue

        # List blossoms that contain vertex "x", top-level first.
        xblossoms = [x]
        while blossom_parent[xblossoms[-1]] != -1:
            xblossoms.append(blossom_parent[xblossoms[-1]])
        xblossoms.reverse()

        # List blossoms that contain vertex "y", top-level first.
        yblossoms = [y]
        while blossom_parent[yblossoms[-1]] != -1:
            yblossoms.append(blossom_parent[yblossoms[-1]])
        yblossoms.reverse()

        # Calculate edge slack =
        #   dual[x] + dual[y] - 2 * weight
        #     + 2 * sum(dual[b] for blossoms "b" containing the edge)
        slack = dual_var[x] + dual_var[y] - 2 * w
        for (bx, by) in zip(xblossoms, yblossoms):
            if bx != by:
                break
            slack += 2 * dual_var[bx]

        # Check that all edges have non-negative slack.
        if slack < 0:
            raise MatchingError(f"Negative slack for edge {e}")

        # Check that all matched edges have zero slack.
        if mate[x] // 2 == e or mate[y] // 2 == e:
            if mate[x] // 2 != e or mate[y] // 2 != e:
                raise MatchingError(f"Half-matched edge {e}")
            if slack != 0:
                raise MatchingError(f"Matched edge {e} has non-zero slack")

    # Check that all unmatched vertices have zero dual.
    for x in range(num_vertex):
        if mate[x] == -1 and dual_var[x] + vertex_dual_offset != 0:
            raise MatchingError(f"Unmatched vertex {x} has non-zero dual")

    # Check that all blossoms with positive dual are "full".
    # A blossom is full if all except one of its vertices are matched
    # to another vertex in the same blossom.
    for b in range(num_vertex, 2 * num_vertex):
        if matching.blossom_base[b] >= 0 and dual_var[b] > 0:
            endps = matching.blossom_endpoints[b]
            assert endps is not None
            if len(endps) % 2 != 1:
                raise MatchingError(f"Blossom {b} has even length")
            for p in endps[1::2]:
                if mate[endpoint[p]] != (p ^ 1) or mate[endpoint[p ^ 1]] != p:
                    raise MatchingError(f"Blossom {b} is not full")

    # Optimum solution confirmed.
