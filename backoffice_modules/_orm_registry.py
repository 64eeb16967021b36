"""
Module ORM Registry (``backoffice_modules._orm_registry``).

Responsibility
--------------
Ensure every module-level SQLAlchemy ORM model is imported so that
``Base.metadata`` contains its table before tables are created.
``create_all_tables()`` is the entry point for scripts and
``tests/conftest.py`` that need the full schema.

Architecture position
---------------------
**Modules layer** -- utility.  Imports sibling ``backoffice_modules``
packages and ``backoffice_kernel.db.engine`` (modules -> kernel).
MUST NOT be imported by ``backoffice_kernel``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``backoffice_modules.*.orm`` module.

    Idempotent.  Project tables come before payroll and AR, which hold
    foreign keys to ``projects``.
    """
    import backoffice_kernel.models  # noqa: F401
    # fmt: off
    import backoffice_modules.project.orm  # noqa: F401
    import backoffice_modules.payroll.orm  # noqa: F401
    import backoffice_modules.ar.orm  # noqa: F401
    # fmt: on


def create_all_tables() -> None:
    """Create kernel and module tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from backoffice_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
