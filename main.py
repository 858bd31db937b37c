"""
p-Laplacian / p-Helmholtz FE solver - unified entry point.

Usage:
    python main.py variant=plap problem=polynomial p=4 eps=1e-3 mx=17 my=17
    python main.py solver=newton variant=phelm problem=cosines mx=33 my=33
    mpiexec -n 4 python main.py solver=snes mx=65 my=65
    python main.py -m mx=9,17,33,65 p=2,3
"""

import logging
import os
import sys
import tempfile
from pathlib import Path

import hydra
import mlflow
from dotenv import load_dotenv
from hydra.utils import instantiate
from omegaconf import DictConfig, OmegaConf

load_dotenv()
sys.path.insert(0, str(Path(__file__).parent / "src"))

log = logging.getLogger(__name__)


def get_experiment_name(cfg: DictConfig) -> str:
    """Build full experiment name with optional prefix."""
    name = cfg.experiment_name
    prefix = cfg.mlflow.get("project_prefix", "")
    if prefix and not name.startswith("/"):
        return f"{prefix}/{name}"
    return name


def setup_mlflow(cfg: DictConfig) -> str:
    """Setup MLflow tracking and return experiment name."""
    tracking_uri = cfg.mlflow.get("tracking_uri", "./mlruns")
    if str(cfg.mlflow.get("mode", "")).lower() in ("files", "local"):
        os.environ.pop("MLFLOW_TRACKING_URI", None)
    os.environ["MLFLOW_TRACKING_URI"] = str(tracking_uri)
    mlflow.set_tracking_uri(tracking_uri)

    experiment_name = get_experiment_name(cfg)
    try:
        mlflow.set_experiment(experiment_name)
    except Exception as exc:
        experiment_name = f"{experiment_name}-restored"
        log.warning(f"MLflow set_experiment failed ({exc}); using '{experiment_name}'")
        mlflow.set_experiment(experiment_name)

    return experiment_name


def is_root_rank(solver) -> bool:
    """Only rank 0 of a distributed solve talks to MLflow."""
    comm = getattr(solver, "comm", None)
    return comm is None or comm.getRank() == 0


def run_solver(cfg: DictConfig) -> str | None:
    """Run solver and log to MLflow. Returns run_id on the logging rank."""
    solver = instantiate(cfg.solver, _convert_="partial")
    solver_name = cfg.solver.name
    run_name = f"{solver_name}_{cfg.variant}_{cfg.problem}_{cfg.mx}x{cfg.my}_p{cfg.p:g}"

    if not is_root_rank(solver):
        solver.solve()
        solver.destroy()
        return None

    parent_run_id = os.environ.get("MLFLOW_PARENT_RUN_ID")
    tags = {"solver": solver_name, "variant": str(cfg.variant)}
    if parent_run_id:
        tags.update({"mlflow.parentRunId": parent_run_id, "parent_run_id": parent_run_id, "sweep": "child"})

    with mlflow.start_run(run_name=run_name, tags=tags, nested=bool(parent_run_id)) as run:
        mlflow.log_params(solver.params.to_mlflow())
        mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        log.info(f"Solving: {run_name}")
        solver.solve()

        mlflow.log_metrics(solver.metrics.to_mlflow())
        batch = solver.time_series.to_mlflow_batch()
        if batch:
            mlflow.tracking.MlflowClient().log_batch(run.info.run_id, metrics=batch)

        if cfg.get("save_fields", True):
            with tempfile.TemporaryDirectory() as tmpdir:
                csv_path = Path(tmpdir) / "fields.csv"
                solver.fields.to_dataframe().to_csv(csv_path, index=False)
                mlflow.log_artifact(str(csv_path))

        solver.destroy()
        log.info(
            f"Done: {solver.metrics.iterations} iter, converged={solver.metrics.converged}, "
            f"error_inf={solver.metrics.error_inf:.3e}, error_l2={solver.metrics.error_l2:.3e}, time={solver.metrics.wall_time_seconds:.2f}s"
        )
        return run.info.run_id


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Main entry point."""
    log.info(f"Solver: {cfg.solver.name}, {cfg.variant} {cfg.problem}, {cfg.mx}x{cfg.my}, p={cfg.p}")
    log.info(f"MLflow experiment: {setup_mlflow(cfg)}")
    run_solver(cfg)


if __name__ == "__main__":
    main()
