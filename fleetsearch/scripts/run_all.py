"""
Run the entire experiment pipeline.

Steps:
01. Generate instances
02. Run the search algorithms
03. Make plots
"""

import logging

from fleetsearch.scripts.generate_instances import generate_instances
from fleetsearch.scripts.make_plots import make_plots
from fleetsearch.scripts.run_search import run_search


def run_all() -> None:
    steps = [
        ("01. Generate instances", generate_instances),
        ("02. Run search algorithms", run_search),
        ("03. Make plots", make_plots),
    ]

    print("----------------------------------------------------------------------")
    print("Running the entire experiment pipeline...\n\n")

    for title, func in steps:
        print("----------------------------------------------------------------------")
        print(f"Running {title}...")

        func()

        print(f"{title} completed successfully!")

    print("\n\n----------------------------------------------------------------------")
    print("Pipeline completed successfully!")
    print("----------------------------------------------------------------------")


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_all()


if __name__ == "__main__":
    main()
