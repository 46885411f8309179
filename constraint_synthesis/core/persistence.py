"""
Persistence layer for synthesis runs.

Provides JSON file-based storage for experiment parameters, run results and
the LP export of the synthesized constraints.
"""

import json
import os
import hashlib
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from filelock import FileLock
from loguru import logger

if TYPE_CHECKING:
    from ..config import ExperimentParameters
    from ..evolution.engine import EvolutionResult


class ResultStore:
    """
    File-based storage for synthesis runs.

    Storage structure:
        <base_path>/
        ├── index.json                  # Quick lookup index
        └── runs/
            └── run_<timestamp>_<hash>/
                ├── parameters.json     # ExperimentParameters
                ├── result.json         # Scores, statistics, history
                └── constraints.lp      # Reduced constraint set
    """

    def __init__(self, base_path: str):
        self.base_path = Path(base_path)
        self.runs_dir = self.base_path / 'runs'
        self.index_file = self.base_path / 'index.json'

        self.runs_dir.mkdir(parents=True, exist_ok=True)

        with self._get_lock(self.index_file):
            if not self.index_file.exists():
                self._write_index({'version': '1.0', 'runs': {}})

    def _get_lock(self, file_path: Path) -> FileLock:
        return FileLock(str(file_path) + '.lock')

    def _read_index(self) -> Dict:
        """Read the index file (caller should hold lock for read-modify-write)."""
        if self.index_file.exists():
            return json.loads(self.index_file.read_text())
        return {'version': '1.0', 'runs': {}}

    def _write_index(self, index: Dict):
        self.index_file.write_text(json.dumps(index, indent=2))

    def _update_index_entry(self, run_id: str, updates: Dict):
        """Atomically update a single run entry in the index."""
        with self._get_lock(self.index_file):
            index = self._read_index()
            index['runs'].setdefault(run_id, {}).update(updates)
            self._write_index(index)

    def generate_run_id(self, parameters_digest: str) -> str:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        salt = hashlib.sha256(os.urandom(16)).hexdigest()[:6]
        return f'run_{timestamp}_{parameters_digest[:8]}_{salt}'

    def save_result(
        self,
        parameters: 'ExperimentParameters',
        result: 'EvolutionResult',
    ) -> str:
        """
        Store parameters, result and LP export of one run.

        Returns:
            The generated run identifier
        """
        digest = parameters.digest()
        run_id = self.generate_run_id(digest)
        run_dir = self.runs_dir / run_id
        run_dir.mkdir(parents=True, exist_ok=True)

        (run_dir / 'parameters.json').write_text(json.dumps(parameters.to_dict(), indent=2))
        (run_dir / 'result.json').write_text(json.dumps(result.to_dict(), indent=2))
        (run_dir / 'constraints.lp').write_text(result.lp_export)

        self._update_index_entry(run_id, {
            'run_id': run_id,
            'parameters_digest': digest,
            'benchmark': parameters.benchmark_type.name,
            'mutation': parameters.type_of_mutation.name,
            'use_recombination': parameters.use_recombination,
            'best_fitness': result.best_fitness,
            'generations': result.generations_completed,
            'created_at': datetime.now().isoformat(),
        })
        logger.info("Stored run {} in {}", run_id, run_dir)
        return run_id

    def load_result(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Load the stored result document of a run."""
        result_file = self.runs_dir / run_id / 'result.json'
        if not result_file.exists():
            return None
        return json.loads(result_file.read_text())

    def load_parameters(self, run_id: str) -> Optional['ExperimentParameters']:
        from ..config import ExperimentParameters

        parameters_file = self.runs_dir / run_id / 'parameters.json'
        if not parameters_file.exists():
            return None
        return ExperimentParameters.load(parameters_file)

    def load_lp_export(self, run_id: str) -> Optional[str]:
        lp_file = self.runs_dir / run_id / 'constraints.lp'
        if not lp_file.exists():
            return None
        return lp_file.read_text()

    def list_results(self, parameters_digest: Optional[str] = None) -> List[Dict]:
        """
        List stored runs, newest first.

        Args:
            parameters_digest: Only return runs of this parameter set
        """
        with self._get_lock(self.index_file):
            index = self._read_index()

        runs = [
            entry for entry in index['runs'].values()
            if parameters_digest is None or entry.get('parameters_digest') == parameters_digest
        ]
        runs.sort(key=lambda x: x.get('created_at', ''), reverse=True)
        return runs
