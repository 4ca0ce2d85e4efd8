"""Repository adapters package: explicit public exports.

Call `get_repositories(db_session, session_factory=None)` to obtain repository instances.
"""


def get_repositories(db_session, session_factory=None):
    """Return a container of repository instances wired to the given db_session.

    The permission store opens one session per read so that role and direct
    grants can be fetched concurrently; it uses ``session_factory`` when given
    and otherwise a sessionmaker bound to the same engine as ``db_session``.
    """
    # Memoize per db_session so callers get stable instances for the same
    # session instead of recreating wrappers on each call.
    from weakref import WeakKeyDictionary

    if "_repos_map" not in globals():
        globals()["_repos_map"] = WeakKeyDictionary()

    repos_map = globals()["_repos_map"]

    factory_key = None if session_factory is None else id(session_factory)

    entry = repos_map.get(db_session)
    if entry is None:
        entry = {}
        repos_map[db_session] = entry
    else:
        existing = entry.get(factory_key)
        if existing is not None:
            return existing

    # import concrete implementations lazily so callers obtain repositories
    # only via the factory API (get_repositories) rather than top-level imports
    from sqlalchemy.ext.asyncio import async_sessionmaker

    from .invitations_repository import SqlAlchemyInvitationRepository
    from .permissions_repository import SqlAlchemyPermissionStore
    from .roles_repository import SqlAlchemyRoleRepository
    from .teams_repository import SqlAlchemyTeamRepository
    from .users_repository import SqlAlchemyUserRepository

    if session_factory is None:
        session_factory = async_sessionmaker(bind=db_session.bind, expire_on_commit=False)

    result = {
        "roles": SqlAlchemyRoleRepository(db_session),
        "users": SqlAlchemyUserRepository(db_session),
        "teams": SqlAlchemyTeamRepository(db_session),
        "invitations": SqlAlchemyInvitationRepository(db_session),
        "permissions": SqlAlchemyPermissionStore(session_factory),
    }

    entry[factory_key] = result

    return result


__all__ = ["get_repositories"]
