"""
Tailer demo: creates a capped collection, tails it, inserts a few documents
and prints the resulting events.

Run against a disposable server:
    python examples/run_tailer_demo.py mongodb://localhost:27017/mongotail_demo
"""

import sys
import threading
import time

from loguru import logger

from mongotail import ConnectionManager, Decorator, QueueSink, Tailer, TailerOptions


def main(uri: str) -> None:
    conns = ConnectionManager(uri)
    db = conns.client.get_default_database()
    if "events" not in db.list_collection_names():
        db.create_collection("events", capped=True, size=1 << 20)

    sink = QueueSink()
    opts = TailerOptions(collections=["events"], server=uri, interval=0.2, on_missing="retry")
    tailer = Tailer(opts, sink, decorator=Decorator(type="demo", tags=("capped",)), connections=conns)
    runner = threading.Thread(target=tailer.run, daemon=True)
    runner.start()

    for i in range(5):
        db.events.insert_one({"seq": i, "msg": f"hello {i}", "meta": {"ts": time.time()}})

    try:
        for _ in range(5):
            event = sink.get(timeout=10)
            print(event.to_dict())
    finally:
        tailer.stop()
        runner.join(timeout=5)
        tailer.close()
        logger.success("demo finished")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "mongodb://localhost:27017/mongotail_demo")
