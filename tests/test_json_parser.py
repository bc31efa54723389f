import copy
import json

import pytest

from starkstack.annotations import AnnotationError
from starkstack.json_parser import (
    MemorySegmentAddress,
    ProofParseError,
    PublicMemoryElement,
    RawPublicInput,
    build_public_input,
    continuous_page_headers,
    load_raw_proof,
    log2_if_power_of_2,
    main,
    parse,
)
from starkstack.layout import Layout
from starkstack.pedersen import FIELD_PRIME, compute_hash_on_elements

ANNOTATIONS = [
    "V->P: /cpu air/STARK/Interaction: Interaction element #0: Field Element(0x5)",
    "V->P: /cpu air/STARK/Interaction: Interaction element #1: Field Element(0x7)",
    "V->P: /cpu air/STARK/Interaction: Interaction element #2: Field Element(0x9)",
    "P->V[0:32]: /cpu air/STARK/Original/Commit on Trace: Hash(0x11)",
    "P->V[32:64]: /cpu air/STARK/Interaction/Commit on Trace: Hash(0x22)",
    "P->V[64:96]: /cpu air/STARK/Out Of Domain Sampling/Commit on Trace: Hash(0x33)",
    "P->V[96:160]: /cpu air/STARK/Out Of Domain Sampling/OODS values: "
    "Field Elements(0x1,0x2)",
    "P->V[160:192]: /cpu air/STARK/FRI/Commitment/Layer 1: Hash(0x44)",
    "P->V[192:256]: /cpu air/STARK/FRI/Commitment/Last Layer: Field Elements(0xa,0xb)",
    "P->V[256:264]: /cpu air/STARK/FRI/Proof of Work: Data(0x55)",
    "P->V[264:296]: /cpu air/STARK/FRI/Decommitment/Layer 0/Virtual Oracle/Trace 0: "
    "Row 0, Column 0: Field Element(0x66)",
    "P->V[296:328]: /cpu air/STARK/FRI/Decommitment/Layer 0/Virtual Oracle/Trace 0: "
    "For node 1: Hash(0x77)",
    "P->V[328:360]: /cpu air/STARK/FRI/Decommitment/Layer 0/Virtual Oracle/Trace 1: "
    "Row 0, Column 0: Field Element(0x88)",
    "P->V[360:392]: /cpu air/STARK/FRI/Decommitment/Layer 0/Virtual Oracle/Trace 1: "
    "For node 5: Hash(0x8a)",
    "P->V[392:424]: /cpu air/STARK/FRI/Decommitment/Layer 0/Virtual Oracle/Trace 2: "
    "Row 0, Column 0: Field Element(0x99)",
    "P->V[424:456]: /cpu air/STARK/FRI/Decommitment/Layer 1: Row 0: Field Element(0xaa)",
    "P->V[456:488]: /cpu air/STARK/FRI/Decommitment/Layer 1: For node 3: Hash(0xbb)",
]

BASE_PROOF = {
    "proof_parameters": {
        "stark": {
            "fri": {
                "fri_step_list": [0, 2],
                "last_layer_degree_bound": 4,
                "n_queries": 10,
                "proof_of_work_bits": 20,
            },
            "log_n_cosets": 2,
        },
    },
    "annotations": ANNOTATIONS,
    "public_input": {
        "layout": "recursive",
        "memory_segments": {
            "output": {"begin_addr": 5, "stop_ptr": 6},
            "program": {"begin_addr": 1, "stop_ptr": 3},
            "execution": {"begin_addr": 7, "stop_ptr": 9},
        },
        "n_steps": 16,
        "public_memory": [
            {"address": 1, "page": 0, "value": "0x10"},
            {"address": 2, "page": 0, "value": "0x20"},
            {"address": 10, "page": 1, "value": "0x3"},
            {"address": 11, "page": 1, "value": "0x4"},
        ],
        "rc_min": 100,
        "rc_max": 200,
    },
}


def proof_dict():
    return copy.deepcopy(BASE_PROOF)


def cells(*triples):
    return [PublicMemoryElement(address=a, page=p, value=v) for a, p, v in triples]


@pytest.mark.parametrize("value", [0, 3, 6, 1023])
def test_log2_rejects_non_powers(value):
    assert log2_if_power_of_2(value) is None


@pytest.mark.parametrize("exponent", [0, 1, 10, 31])
def test_log2_of_powers(exponent):
    assert log2_if_power_of_2(2**exponent) == exponent


def test_load_raw_proof_defaults_and_values():
    raw = load_raw_proof(proof_dict())
    assert raw.proof_parameters.n_verifier_friendly_commitment_layers == 0
    assert raw.proof_parameters.stark.fri.fri_step_list == [0, 2]
    assert raw.public_input.layout is Layout.RECURSIVE
    assert raw.public_input.dynamic_params is None
    assert raw.public_input.memory_segments["output"] == MemorySegmentAddress(5, 6)


def test_load_raw_proof_missing_field():
    data = proof_dict()
    del data["public_input"]["n_steps"]
    with pytest.raises(ProofParseError):
        load_raw_proof(data)


def test_load_raw_proof_unknown_layout():
    data = proof_dict()
    data["public_input"]["layout"] = "bogus"
    with pytest.raises(ProofParseError):
        load_raw_proof(data)


def test_load_raw_proof_negative_number():
    data = proof_dict()
    data["public_input"]["rc_min"] = -1
    with pytest.raises(ProofParseError):
        load_raw_proof(data)


def test_stark_config():
    config = load_raw_proof(proof_dict()).stark_config()
    assert 2**config.log_trace_domain_size == 16 * 16
    assert config.traces.original.n_columns == 7
    assert config.traces.interaction.n_columns == 3
    assert config.composition.n_columns == 2
    assert (
        config.traces.original.vector.height
        == config.log_trace_domain_size + config.log_n_cosets
    )
    assert config.fri.log_input_size == config.composition.vector.height
    assert config.fri.n_layers == 2
    assert config.fri.fri_step_sizes == [0, 2]
    assert 2**config.fri.log_last_layer_degree_bound == 4
    assert len(config.fri.inner_layers) == 1
    inner = config.fri.inner_layers[0]
    assert inner.n_columns == 2**2
    assert inner.vector.height == config.fri.log_input_size - 0 - 2
    assert config.proof_of_work.n_bits == 20
    assert config.n_queries == 10


def test_stark_config_with_dynamic_params():
    data = proof_dict()
    data["public_input"]["layout"] = "dynamic"
    data["public_input"]["dynamic_params"] = {
        "num_columns_second": 5,
        "num_columns_first": 4,
        "cpu_component_step": 1,
    }
    config = load_raw_proof(data).stark_config()
    assert config.traces.original.n_columns == 4
    assert config.traces.interaction.n_columns == 5
    assert 2**config.log_trace_domain_size == 16 * 16


def test_invalid_last_layer_degree_bound():
    data = proof_dict()
    data["proof_parameters"]["stark"]["fri"]["last_layer_degree_bound"] = 3
    with pytest.raises(ProofParseError, match="last layer"):
        load_raw_proof(data).stark_config()


def test_invalid_trace_domain():
    data = proof_dict()
    data["public_input"]["n_steps"] = 12
    with pytest.raises(ProofParseError, match="cpu component step"):
        load_raw_proof(data).stark_config()


def test_empty_fri_step_list():
    data = proof_dict()
    data["proof_parameters"]["stark"]["fri"]["fri_step_list"] = []
    with pytest.raises(ProofParseError):
        load_raw_proof(data).stark_config()


def test_continuous_page_headers():
    memory = cells((1, 0, "0x10"), (10, 1, "0x3"), (11, 1, "0x4"))
    headers = continuous_page_headers(memory, 5, 7)
    assert len(headers) == 1
    start, size, digest, product = headers[0]
    assert (start, size) == (10, 2)
    assert digest == compute_hash_on_elements([3, 4])
    assert 0 <= product < FIELD_PRIME


def test_page_product_vanishes_at_root():
    memory = cells((1, 0, "0x10"), (10, 1, "0x3"))
    alpha = 7
    z = 10 + alpha * 3
    assert continuous_page_headers(memory, z, alpha)[0][3] == 0


def test_page_address_gap_raises():
    memory = cells((1, 0, "0x10"), (10, 1, "0x3"), (12, 1, "0x4"))
    with pytest.raises(ProofParseError):
        continuous_page_headers(memory, 5, 7)


def test_missing_page_raises():
    memory = cells((1, 0, "0x10"), (10, 2, "0x3"))
    with pytest.raises(ProofParseError):
        continuous_page_headers(memory, 5, 7)


def test_build_public_input_requires_memory():
    raw = RawPublicInput(
        layout=Layout.RECURSIVE,
        memory_segments={},
        n_steps=16,
        public_memory=[],
        rc_min=0,
        rc_max=0,
    )
    with pytest.raises(ProofParseError, match="Invalid public memory"):
        build_public_input(raw, 5, 7)


def test_parse_public_input():
    public_input = parse(json.dumps(proof_dict())).public_input
    assert 2**public_input.log_n_steps == 16
    assert public_input.range_check_min == 100
    assert public_input.range_check_max == 200
    assert public_input.layout == int.from_bytes(b"recursive", "big")
    assert [s.begin_addr for s in public_input.segments] == [1, 7, 5]
    assert [(c.address, c.value) for c in public_input.main_page] == [
        (1, 0x10),
        (2, 0x20),
    ]
    assert (public_input.padding_addr, public_input.padding_value) == (1, 0x10)
    assert public_input.n_continuous_pages == 1
    assert public_input.continuous_page_headers[:2] == [10, 2]
    assert public_input.dynamic_params == {}


def test_parse_sorts_dynamic_params():
    data = proof_dict()
    data["public_input"]["dynamic_params"] = {"b_param": 1, "a_param": 2}
    public_input = parse(json.dumps(data)).public_input
    assert list(public_input.dynamic_params) == ["a_param", "b_param"]


def test_parse_commitments_and_witness():
    proof = parse(json.dumps(proof_dict()))
    unsent = proof.unsent_commitment
    assert unsent.traces.original == 0x11
    assert unsent.traces.interaction == 0x22
    assert unsent.composition == 0x33
    assert unsent.oods_values == [0x1, 0x2]
    assert unsent.fri.inner_layers == [0x44]
    assert unsent.fri.last_layer_coefficients == [0xA, 0xB]
    assert unsent.proof_of_work.nonce == 0x55

    witness = proof.witness
    assert witness.traces_decommitment.original.values == [0x66]
    assert witness.traces_witness.original.vector.authentications == [0x77]
    assert witness.traces_decommitment.interaction.values == [0x88]
    assert witness.traces_witness.interaction.vector.authentications == [0x8A]
    assert witness.composition_decommitment.values == [0x99]
    assert witness.composition_witness.vector.authentications == []
    assert len(witness.fri_witness.layers) == 1
    layer = witness.fri_witness.layers[0]
    assert layer.leaves == [0xAA]
    assert layer.table_witness.vector.authentications == [0xBB]


def test_parse_unknown_builtin():
    data = proof_dict()
    data["public_input"]["memory_segments"]["mystery"] = {"begin_addr": 0, "stop_ptr": 0}
    with pytest.raises(ProofParseError):
        parse(json.dumps(data))


def test_parse_wrong_interaction_count():
    data = proof_dict()
    data["annotations"] = [line for line in ANNOTATIONS if "#2" not in line]
    with pytest.raises(AnnotationError):
        parse(json.dumps(data))


def test_parse_invalid_json():
    with pytest.raises(ProofParseError):
        parse("{not json")


def test_main_prints_proof(tmp_path, capsys):
    path = tmp_path / "proof.json"
    path.write_text(json.dumps(proof_dict()), encoding="utf-8")
    assert main([str(path)]) == 0
    output = json.loads(capsys.readouterr().out)
    assert output["unsent_commitment"]["composition"] == 0x33
    assert output["public_input"]["main_page_len"] == 2


def test_main_reports_errors(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text("{}", encoding="utf-8")
    assert main([str(path)]) == 1
    assert "error" in capsys.readouterr().err


def test_main_missing_file(tmp_path):
    assert main([str(tmp_path / "absent.json")]) == 1