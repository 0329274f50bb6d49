"""Lookup helpers shared by command handlers and query functions."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.exceptions import NotFoundError


def load(aggregate_cls, identifier):
    """Fetch an aggregate by id, raising ``NotFoundError`` when it is missing."""
    try:
        return current_domain.repository_for(aggregate_cls).get(str(identifier))
    except ObjectNotFoundError as exc:
        name = aggregate_cls.__name__
        raise NotFoundError({name.lower(): [f"{name} {identifier} not found"]}) from exc


def find_one(aggregate_cls, **filters):
    """Return the first aggregate matching ``filters``, or None."""
    repo = current_domain.repository_for(aggregate_cls)
    results = repo._dao.query.filter(**filters).all()
    if not results or not results.items:
        return None
    return results.first
