from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session


@contextmanager
def smart_transaction(session: Session) -> Iterator[Session]:
    """
    Run one unit of writes and commit it.

    Request-scoped sessions have usually autobegun a transaction by the time
    a write starts (the preceding lookups open one). In that case the unit
    runs inside a SAVEPOINT so a failure only discards the unit, and the
    enclosing transaction is committed once the unit succeeds. Otherwise a
    plain begin()/commit is used.

        with smart_transaction(db):
            db.add(...)
    """
    if session.in_transaction():
        with session.begin_nested():
            yield session
        session.commit()
    else:
        with session.begin():
            yield session
