"""Identifier allocation for new pastas."""

import secrets
from collections.abc import Callable, Collection

from errors import CapacityError


def allocate(
    taken: Collection[int],
    id_space: int,
    max_attempts: int,
    draw: Callable[[int], int] = secrets.randbelow,
) -> int:
    """Draw a random id in ``[0, id_space)`` that is not in ``taken``.

    Retries up to ``max_attempts`` times before giving up with CapacityError.
    """
    if len(taken) >= id_space:
        raise CapacityError(f"all {id_space} pasta ids are in use")

    for _ in range(max_attempts):
        candidate = draw(id_space)
        if candidate not in taken:
            return candidate

    raise CapacityError(f"no free pasta id after {max_attempts} attempts")
