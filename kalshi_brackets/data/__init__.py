"""Storage, schema migration, snapshot operations and backups."""

from kalshi_brackets.data.schema import (
    parse_workspace,
    parse_snapshots,
    parse_scheme,
    default_workspace,
    workspace_to_entries,
    format_timestamp,
    parse_timestamp,
)

from kalshi_brackets.data.store import (
    JsonFileStorage,
    JsonSnapshotStore,
)

from kalshi_brackets.data.snapshots import (
    default_save_label,
    create_snapshot,
    add_snapshot,
    find_snapshot,
    attach_actual,
    clear_actual,
    delete_snapshot,
    update_snapshot_scheme,
    add_source_row,
    remove_source_row,
    update_source_row,
    get_station_data,
    with_station_data,
    active_scheme,
)

from kalshi_brackets.data.backup import (
    ImportResult,
    export_payload,
    export_filename,
    export_to_file,
    import_payload,
    import_from_file,
)

__all__ = [
    # Schema
    "parse_workspace",
    "parse_snapshots",
    "parse_scheme",
    "default_workspace",
    "workspace_to_entries",
    "format_timestamp",
    "parse_timestamp",
    # Store
    "JsonFileStorage",
    "JsonSnapshotStore",
    # Snapshots
    "default_save_label",
    "create_snapshot",
    "add_snapshot",
    "find_snapshot",
    "attach_actual",
    "clear_actual",
    "delete_snapshot",
    "update_snapshot_scheme",
    "add_source_row",
    "remove_source_row",
    "update_source_row",
    "get_station_data",
    "with_station_data",
    "active_scheme",
    # Backup
    "ImportResult",
    "export_payload",
    "export_filename",
    "export_to_file",
    "import_payload",
    "import_from_file",
]
