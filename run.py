import logging
from copy import deepcopy
from pathlib import Path

from pairstream.config import PARAMS, PAIR_CONFIG
from pairstream.core import PairSession
from pairstream.data import DemoCSVLoader, YahooLoader

DATA_DIR = Path(__file__).resolve().parent / "data"
USE_VENDOR = False  # turn this on to pull 1m bars from Yahoo instead of ./data tick CSVs


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if USE_VENDOR:
        loader = YahooLoader(period="5d", interval="1m")
        params = deepcopy(PARAMS)
        params.update({
            "sampling_ms": 60_000,
            "window_size": 60,
        })
    else:
        loader = DemoCSVLoader(str(DATA_DIR))
        params = deepcopy(PARAMS)

    for pc in PAIR_CONFIG:
        name = pc["name"]
        print(f"\n=== {name} ===")
        session = PairSession.from_pair_config(pc, params)
        try:
            session.buffer.extend(loader.load_ticks(session.symbol_a))
            session.buffer.extend(loader.load_ticks(session.symbol_b))
        except (OSError, ValueError) as e:
            print("ERROR:", e)
            continue

        out = session.recompute()
        print(f"points: {len(out['points'])}")
        print(out["result"].to_dict())
        print(out["metrics"])
        if out["alert"]:
            print("ALERT:", out["alert"])


if __name__ == "__main__":
    main()
