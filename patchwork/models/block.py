# Block matrix algebra over key-indexed groups
# Author: Shengning Wang

"""
Patchwork kriging clusters the data into groups, which turns every large matrix into a Grouped
collection of blocks. With the keys k_0, ..., k_n taken in any fixed order:

    lhs = [x_0, ..., x_n]        (horizontal blocks)
    rhs = [y_0                   (vertical blocks)
           ...
           y_n]

the helpers below compute products and solves of the concatenated matrices without ever
materializing the concatenation. Blocks are always matched by key, never by position.
"""

import numpy as np
from typing import Any, Callable

from patchwork.data.grouped import Grouped
from patchwork.models.errors import BlockStructureError


def check_same_keys(lhs: Grouped, rhs: Grouped) -> None:
    """
    Raises BlockStructureError unless both operands hold the same non-empty key set.
    """
    if len(lhs) == 0 or len(rhs) == 0:
        raise BlockStructureError('Block operations need at least one group')
    lhs_keys, rhs_keys = set(lhs.keys()), set(rhs.keys())
    if lhs_keys != rhs_keys:
        missing = sorted(map(repr, lhs_keys ^ rhs_keys))
        raise BlockStructureError(f'Grouped operands have different keys, mismatched: {missing}')


def block_accumulate(lhs: Grouped, rhs: Grouped, apply_function: Callable[[Any, Any], np.ndarray]) -> np.ndarray:
    """
    Sums apply_function over matching blocks: sum_k f(lhs[k], rhs[k]).

    Args:
    - lhs (Grouped): Left blocks
    - rhs (Grouped): Right blocks, same keys as lhs
    - apply_function (Callable): f(x, y) -> np.ndarray, one consistent shape for every key

    Returns:
    - np.ndarray: Accumulated matrix
    """
    check_same_keys(lhs, rhs)

    keys = lhs.keys()
    output = np.array(apply_function(lhs.at(keys[0]), rhs.at(keys[0])), dtype=float)
    for key in keys[1:]:
        # numpy refuses to add blocks of different shapes
        output += apply_function(lhs.at(key), rhs.at(key))
    return output


def block_product(lhs: Grouped, rhs: Grouped) -> np.ndarray:
    """
    [x_0, ..., x_n] @ [y_0; ...; y_n]
    """
    return block_accumulate(lhs, rhs, lambda x, y: x @ y)


def block_inner_product(lhs: Grouped, rhs: Grouped) -> np.ndarray:
    """
    [x_0, ..., x_n]^T @ [y_0; ...; y_n]
    """
    return block_accumulate(lhs, rhs, lambda x, y: x.T @ y)


def block_solve(lhs: Grouped, rhs: Grouped) -> Grouped:
    """
    Applies the inverse of a block diagonal matrix to a block vector / matrix.

    Each lhs value must expose solve(rhs_block), typically a decomposition computed at fit time.

    Args:
    - lhs (Grouped): Solvers, one per group
    - rhs (Grouped): Right-hand side blocks, same keys as lhs

    Returns:
    - Grouped: lhs[k]^{-1} @ rhs[k], keyed and ordered like rhs
    """
    check_same_keys(lhs, rhs)
    return rhs.apply(lambda key, block: lhs.at(key).solve(block))
