import pytest

from orders.models import MaterialStatus
from orders.policy import MaterialRuleParams
from orders.scheduling.material import SignalMaterialGate, StepTokenMaterialGate, material_status
from orders.step_state import classify


@pytest.mark.parametrize("token", ["Hold", "QN"])
def test_hold_or_qn_on_next_step_blocks(make_order, make_product, token):
    product = make_product()
    order = make_order("A", done=2, token=token, details={"material_status": "Ready"})
    assert material_status(order, product) == MaterialStatus.BLOCKED


def test_hold_on_a_later_step_only_blocks_when_configured(make_order, make_product):
    record = {"Cut": "", "Wind": "", "Assy": "Hold"}
    order = make_order("A", step_record=record, details={"material_status": "Ready"})

    assert material_status(order, make_product()) == MaterialStatus.AVAILABLE

    strict = make_product(config={"material_rule": MaterialRuleParams(block_on_any_step=True)})
    assert material_status(order, strict) == MaterialStatus.BLOCKED


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Ready", MaterialStatus.AVAILABLE),
        ("ok", MaterialStatus.AVAILABLE),
        ("齐套", MaterialStatus.AVAILABLE),
        ("Shortage", MaterialStatus.BLOCKED),
        ("", MaterialStatus.UNKNOWN),
        (None, MaterialStatus.UNKNOWN),
    ],
)
def test_material_column(make_order, make_product, value, expected):
    details = {} if value is None else {"material_status": value}
    order = make_order("A", details=details)
    assert material_status(order, make_product()) == expected


def test_custom_status_field(make_order, make_product):
    rule = MaterialRuleParams(status_fields=("Kit",), ready_values=("complete",))
    product = make_product(config={"material_rule": rule})

    assert material_status(make_order("A", details={"Kit": "Complete"}), product) == MaterialStatus.AVAILABLE
    assert material_status(make_order("B", details={"Kit": "Ready"}), product) == MaterialStatus.BLOCKED


def test_signal_gate_overrides_and_falls_back(make_order, make_product):
    product = make_product()
    gate = SignalMaterialGate(
        signal={"A": MaterialStatus.BLOCKED},
        fallback=StepTokenMaterialGate(),
    )
    a = make_order("A", details={"material_status": "Ready"})
    b = make_order("B", details={"material_status": "Ready"})

    assert gate.status(a, product, classify(a, product.steps)) == MaterialStatus.BLOCKED
    assert gate.status(b, product, classify(b, product.steps)) == MaterialStatus.AVAILABLE


def test_signal_gate_without_fallback_is_unknown(make_order, make_product):
    product = make_product()
    order = make_order("Z")
    assert material_status(order, product, gate=SignalMaterialGate()) == MaterialStatus.UNKNOWN


@pytest.mark.parametrize(
    "details, expected",
    [
        ({"Material Status": "齐套"}, MaterialStatus.AVAILABLE),
        ({"物料状态": "缺料"}, MaterialStatus.BLOCKED),
        ({"material_status": "", "Material_Status": "OK"}, MaterialStatus.AVAILABLE),
    ],
)
def test_material_column_aliases(make_order, make_product, details, expected):
    assert material_status(make_order("A", details=details), make_product()) == expected


def test_signal_gate_accepts_loose_values_and_degrades_unknown_ones(make_order, make_product):
    product = make_product()
    gate = SignalMaterialGate(signal={"A": "blocked", "B": "AVAILABLE", "C": "shortage"})

    assert material_status(make_order("A"), product, gate=gate) == MaterialStatus.BLOCKED
    assert material_status(make_order("B"), product, gate=gate) == MaterialStatus.AVAILABLE
    assert material_status(make_order("C"), product, gate=gate) == MaterialStatus.UNKNOWN
