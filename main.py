"""Dungeon Master Chat dev launcher. Serves the API with auto-reload."""

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")


def main():
    parser = argparse.ArgumentParser(description="Dungeon Master Chat dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--demo", action="store_true",
                        help="Wipe the data dir and create a demo character and campaign")
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("BACKEND_PORT", "3000")))
    parser.add_argument("--no-reload", action="store_true",
                        help="Disable auto-reload on source changes")
    args = parser.parse_args()

    data_dir = (args.data_dir or ROOT / "data").resolve()
    # The app reads DATA_DIR on import, including in the reload worker
    os.environ["DATA_DIR"] = str(data_dir)

    if args.demo:
        from backend import storage
        from backend.demo import create_demo_data

        storage.init_storage(data_dir)
        create_demo_data()

    print(f"Dungeon Master listening on http://localhost:{args.port} (data: {data_dir})")
    uvicorn.run(
        "backend.app:app",
        host=args.host,
        port=args.port,
        reload=not args.no_reload,
        reload_dirs=[str(ROOT / "backend"), str(ROOT / "dungeon_master")],
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
