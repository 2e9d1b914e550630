# scripts/sync_import_template.py
# Rebuilds data/employees_import_sample.csv so its header matches the field schema.

# When running as "python scripts/sync_import_template.py" uncomment these lines
# import sys, os
# sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from database.connection import storage
from modules.employees.services import import_sample_path, sync_import_template


def main() -> dict:
    storage.init_storage()
    result = sync_import_template(storage)
    path = import_sample_path(storage)

    if result["status"] == "created":
        print(f"✅ Created {path} ({len(result['added'])} columns)")
    elif result["status"] == "updated":
        print(f"✅ Updated {path}")
        if result["added"]:
            print(f"   + added: {', '.join(result['added'])}")
        if result["removed"]:
            print(f"   - removed: {', '.join(result['removed'])}")
    else:
        print(f"📦 {path} is already up to date")
    return result


if __name__ == "__main__":
    main()
