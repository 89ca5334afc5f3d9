#!/usr/bin/env python3
"""
Insert any missing practice areas into the specialisation catalogue.
"""


def main() -> int:
    from lawdir.db.session import get_db_session, init_db
    from lawdir.specialisations import seed_specialisations

    init_db()
    with get_db_session() as db:
        added = seed_specialisations(db)
    print(f"Specialisations added: {added}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
