"""Command-line runner: ``python -m fleetsim``.

Seeds a store with the Manhattan demo mission, starts the engine and renders
the tracked drones in a live table until the requested number of ticks has
run or Ctrl-C is pressed.
"""

import argparse
import logging
import time

import numpy as np
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from fleetsim.config import MqttSettings, SimulationConfig, StoreSettings
from fleetsim.demo import create_test_mission, seed_demo_fleet, start_test_mission
from fleetsim.events import GLOBAL_TOPIC, EventHub, FanOutPublisher, MqttPublisher
from fleetsim.log import CONSOLE, setup_logging
from fleetsim.simulator import SimulationEngine
from fleetsim.store import InMemoryFleetStore, MongoFleetStore

logger = logging.getLogger("fleetsim")

REFRESH_INTERVAL = 0.25  # seconds between table redraws


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="fleetsim", description="Run the drone movement simulation.")
    parser.add_argument("--ticks", type=int, default=0, help="stop after this many ticks (0 runs until Ctrl-C)")
    parser.add_argument("--interval", type=float, default=None, help="seconds between ticks")
    parser.add_argument("--seed", type=int, default=None, help="seed of the random source")
    parser.add_argument("--owner", default="demo-user", help="owner of the demo drone and mission")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--mongo-uri", default=None, help="use MongoDB instead of the in-memory store")
    parser.add_argument("--mongo-db", default=StoreSettings.database)
    parser.add_argument("--mqtt-host", default=None, help="also publish events to this MQTT broker")
    parser.add_argument("--mqtt-port", type=int, default=MqttSettings.port)
    return parser.parse_args(argv)


def build_table(engine: SimulationEngine, events: int) -> Panel:
    status = engine.status()
    table = Table(expand=True)
    for column in ("Drone", "Status", "Phase", "Battery", "Latitude", "Longitude", "Waypoint"):
        table.add_column(column)

    for row in engine.snapshot():
        battery = row["battery"]
        color = "red" if battery <= engine.config.low_battery_threshold else "green"
        table.add_row(
            row["name"],
            row["status"],
            "[yellow]paused[/yellow]" if row["paused"] else row["phase"],
            f"[{color}]{battery:.1f}%[/{color}]",
            f"{row['latitude']:.6f}" if row["latitude"] is not None else "-",
            f"{row['longitude']:.6f}" if row["longitude"] is not None else "-",
            str(row["waypoint"]),
        )

    title = (
        f"Tick {status['tick_count']} | {status['tracked_drone_count']} drones"
        f" | {status['paused_drone_count']} paused | {events} events"
    )
    return Panel(table, title=title, padding=(0, 1))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    overrides = {"tick_interval": args.interval} if args.interval else {}
    config = SimulationConfig.from_env(**overrides)

    if args.mongo_uri:
        store = MongoFleetStore.connect(StoreSettings(args.mongo_uri, args.mongo_db), config.store_timeout)
    else:
        store = InMemoryFleetStore()

    hub = EventHub()
    counter = {"events": 0}

    def count(_event):
        counter["events"] += 1

    hub.subscribe(GLOBAL_TOPIC, count)

    mqtt_publisher = None
    publisher = hub
    if args.mqtt_host:
        mqtt_publisher = MqttPublisher(MqttSettings(host=args.mqtt_host, port=args.mqtt_port))
        mqtt_publisher.connect()
        publisher = FanOutPublisher(hub, mqtt_publisher)

    steps = (
        lambda: seed_demo_fleet(store, args.owner),
        lambda: create_test_mission(store, args.owner, publisher),
        lambda: start_test_mission(store, args.owner, publisher),
    )
    for step in steps:
        result = step()
        logger.info(result["message"])
        if not result["success"]:
            return 1

    engine = SimulationEngine(store, publisher, config, rng=np.random.default_rng(args.seed))
    result = engine.start()
    if not result["success"]:
        logger.error(result["message"])
        return 1

    try:
        with Live(build_table(engine, 0), console=CONSOLE, auto_refresh=False) as live:
            while not args.ticks or engine.tick_count < args.ticks:
                time.sleep(REFRESH_INTERVAL)
                live.update(build_table(engine, counter["events"]), refresh=True)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        logger.info(engine.stop()["message"])
        if mqtt_publisher is not None:
            mqtt_publisher.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
