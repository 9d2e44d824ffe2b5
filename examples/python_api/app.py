from __future__ import annotations

import argparse
from pathlib import Path

from feature_env.config import load, plan


def main() -> None:
    parser = argparse.ArgumentParser(description="Plan a feature environment via the Python API")
    parser.add_argument("--config", default="feature-env.yaml", help="Path to config file")
    parser.add_argument("--out", help="Write the plan JSON to this path")
    args = parser.parse_args()

    plan_obj = plan(load(Path(args.config)))
    print("Plan summary:", {k: v for k, v in plan_obj.summary().items() if v})
    for stage, names in enumerate(plan_obj.stages(), start=1):
        print(f"- stage {stage}: {', '.join(names)}")
    print("Feature URL:", plan_obj.outputs.feature_url)

    if args.out:
        plan_obj.save(Path(args.out))
        print(f"Plan written to {args.out}")


if __name__ == "__main__":
    main()
