import logging
import os
import sys
import time
from datetime import datetime, timezone

from advisory import advise
from orders.models import Product
from orders.policy import SchedulingConfig
from orders.scheduling import SkipReason, plan_schedule
from orders.snapshot import load_orders_csv

STEPS = ["Cut", "Wind", "Assy", "Test", "Pack"]


def run_simulation(filepath="sampledata/orders.csv"):
    print("=== STARTING SCHEDULING SIMULATION ===")

    # Resolve the correct path depending on where the user runs the script from.
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    absolute_path = os.path.join(base_dir, filepath)

    # 1. Configure the line
    product = Product.new(
        "stator",
        STEPS,
        name="Stator Line",
        scheduling_config=SchedulingConfig.from_dict({
            # Wind and Test are sized from their resources, Cut and Assy are fixed
            "stepDurations": {"Wind": 2, "Test": 0.5, "Pack": 0.25},
            "stepStaffCounts": {"Wind": 1},
            "stepMachineCounts": {"Test": 1},
            "shiftConfig": {"standardHours": 8, "overtimeHours": 0},
            "capacityByStep": {"Cut": 6, "Assy": 3},
            "monthlyTarget": 400,
        }),
        custom_instructions=os.getenv("ADVISORY_INSTRUCTIONS"),
        ai_model=os.getenv("ADVISORY_MODEL"),
        ai_provider=os.getenv("ADVISORY_PROVIDER"),
    )

    # 2. Load the snapshot
    orders = load_orders_csv(absolute_path, product.steps, product_id=product.id)
    print(f"Loaded {len(orders)} Work Orders.\n")

    # 3. Run the engine
    print("Running scheduling pass...")
    start_time = time.time()
    result = plan_schedule(orders, product, now=datetime.now(timezone.utc))
    print(f"Engine planned {result.summary.total_planned} orders in {time.time() - start_time:.3f}s.\n")

    print("--- Planned Orders ---")
    for planned in result.planned:
        print(f"{planned.wo_id} -> {planned.step} (score {planned.score:.2f}, {planned.priority.value}, material {planned.material_status.value})")

    print("\n--- Step Utilization ---")
    for step, util in result.step_utilization.items():
        capacity = "unlimited" if util.is_unlimited else util.capacity
        level = f" ({util.constraint_level.value})" if util.constraint_level else ""
        print(f"  {step}: {util.planned} / {capacity}{level}")

    blocked = result.skipped_for(SkipReason.MATERIAL)
    if blocked:
        print("\nBlocked by material / hold:")
        for skipped in blocked:
            print(f"  - {skipped.wo_id} at {skipped.step}")

    s = result.summary
    print("\n=== SIMULATION COMPLETE ===")
    print(f"Planned: {s.total_planned} (High priority: {s.high_priority_planned})")
    print(f"Skipped (capacity / material): {s.skipped_due_to_capacity} / {s.skipped_due_to_material}")
    print(f"Completed: {s.completed}  Malformed: {s.malformed}")
    if s.daily_target:
        print(f"Daily target from monthly goal: {s.daily_target} (over by {s.planned_over_target})")

    # 4. Optional advisory (never changes the plan)
    advice = advise(result, product)
    if advice:
        print(f"\nAdvisory: {advice}")
    return result


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    run_simulation(*sys.argv[1:2])
