import pandas as pd
import numpy as np
from datetime import datetime, timezone, timedelta

STEPS = ["Cut", "Wind", "Assy", "Test", "Pack"]

# Tokens a step can carry before it is finished
OPEN_TOKENS = ["", "P", "WIP", "Hold", "QN"]


def generate_mock_orders(num_orders=200, steps=STEPS, output_file="sampledata/orders.csv", seed=None):
    """
    Generates a realistic work-order snapshot for exercising the scheduler.
    Each order has finished a random prefix of the pipeline (completion timestamps),
    carries an open token on its current step, and is blank afterwards. A small share
    of orders is fully finished so completed-order handling shows up in the output.
    """
    rng = np.random.default_rng(seed)
    now = datetime.now(timezone.utc)

    data = []
    for order_index in range(num_orders):
        created_at = now - timedelta(hours=int(rng.integers(1, 24 * 30)))
        updated_at = created_at + (now - created_at) * float(rng.uniform(0.0, 1.0))

        # How many steps are already done (len(steps) = finished order)
        done_count = int(rng.choice(len(steps) + 1, p=_progress_weights(len(steps))))

        row = {
            "wo_id": f"WO{str(order_index + 1).zfill(5)}",
            "product_id": "stator",
            "priority": rng.choice(["High", "Normal"], p=[0.15, 0.85]),
            "created_at": created_at.isoformat(),
            "updated_at": updated_at.isoformat(),
        }

        for step_index, step in enumerate(steps):
            if step_index < done_count:
                finished = created_at + timedelta(hours=4 * (step_index + 1))
                row[step] = finished.strftime("%d-%b, %H:%M")
            elif step_index == done_count:
                row[step] = rng.choice(OPEN_TOKENS, p=[0.5, 0.2, 0.2, 0.05, 0.05])
            else:
                row[step] = ""

        row["material_status"] = rng.choice(["Ready", "", "Shortage"], p=[0.7, 0.2, 0.1])
        row["WO DUE"] = (created_at + timedelta(days=int(rng.integers(5, 35)))).date().isoformat()
        data.append(row)

    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"✅ Generated {num_orders} work orders and saved to '{output_file}'")

    # Print a quick preview of where work is waiting
    print("\nOrders by current step:")
    current = df[steps].apply(lambda r: next((s for s in steps if r[s] == "" or r[s] in OPEN_TOKENS), "done"), axis=1)
    for name, count in current.value_counts().items():
        print(f"  {name}: {count} orders")
    return df


def _progress_weights(step_count):
    # Most orders sit early in the pipeline; a few are finished
    weights = np.linspace(2.0, 1.0, step_count + 1)
    weights[-1] = 0.5
    return weights / weights.sum()


if __name__ == "__main__":
    generate_mock_orders(num_orders=200)
