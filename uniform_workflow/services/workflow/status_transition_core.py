from sqlalchemy import update


def _status_cas_stmt(
    model,
    entity_id: str,
    status_field: str,
    expected_status: str | None,
    values: dict,
    expected_version: int | None = None,
):
    """Conditional status UPDATE: only matches while the row still holds `expected_status`."""
    status_col = getattr(model, status_field)

    where_clause = [model.id == entity_id]
    if expected_status is None:
        where_clause.append(status_col.is_(None))
    else:
        where_clause.append(status_col == expected_status)

    if expected_version is not None:
        where_clause.append(model.version == expected_version)

    return (
        update(model)
        .where(*where_clause)
        .values(**values, version=model.version + 1)
        .execution_options(synchronize_session=False)
    )
