import csv
import json

import numpy as np

from mathviz.io.formats import write_trajectory
from mathviz.orchestrator.pipeline import solve_van_der_pol


def test_write_trajectory_formats(tmp_path):
    flat = solve_van_der_pol(1.0, 2.0, 0.0, 0.01, 5)

    json_path = tmp_path / "traj.json"
    write_trajectory(json_path, flat, "json", ("x", "y"), meta={"system": "van_der_pol"})
    payload = json.loads(json_path.read_text())
    assert payload["system"] == "van_der_pol"
    assert payload["dimension"] == 2
    assert payload["data"] == flat.tolist()

    csv_path = tmp_path / "traj.csv"
    write_trajectory(csv_path, flat, "csv", ("x", "y"))
    with csv_path.open() as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 6
    assert [float(rows[3]["x"]), float(rows[3]["y"])] == flat[6:8].tolist()

    npy_path = tmp_path / "traj.npy"
    write_trajectory(npy_path, flat, "npy", ("x", "y"))
    assert np.array_equal(np.load(npy_path), flat)
