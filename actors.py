"""
Concurrent batch evaluation using Pykka actors
Every actor reads the same root environment; evaluation only ever writes
to fresh child scopes, so no locking is needed
"""

from typing import Any, Dict, List, Optional, Sequence

import pykka

from error_handling import CellError
from expressions import Expression, render
from interpreter import CellInterpreter, MODES


DEFAULT_WORKERS = 4


def make_outcome(source: str, result: Optional[str] = None, error: Optional[str] = None) -> Dict:
  """Create an immutable outcome record for one source line"""
  return {
      'source': source,
      'result': result,
      'error': error
  }


class EvaluationActor(pykka.ThreadingActor):
  """Actor that evaluates (or reduces) expressions against a shared interpreter"""

  def __init__(self, actor_id: str, interpreter: CellInterpreter, mode: str = "evaluate"):
    super().__init__()
    self.actor_id = actor_id
    self.interpreter = interpreter
    self.mode = mode

  def run_expression(self, source: str, expr: Expression) -> Dict:
    """Run one parsed expression; Cell errors become part of the outcome"""
    try:
      if self.mode == "evaluate":
        result = self.interpreter.evaluate(expr)
      else:
        result = self.interpreter.reduce(expr)
      return make_outcome(source, result=render(result))
    except CellError as e:
      return make_outcome(source, error=e.message)


class EvaluatorPool:
  """A fixed set of evaluation actors"""

  def __init__(self):
    self.actors: List[pykka.ActorRef] = []
    self.proxies: List[pykka.ActorProxy] = []

  def start(self, interpreter: CellInterpreter, workers: int, mode: str) -> None:
    for i in range(workers):
      actor_ref = EvaluationActor.start(f"evaluator-{i}", interpreter, mode)
      self.actors.append(actor_ref)
      self.proxies.append(actor_ref.proxy())

  def submit(self, index: int, source: str, expr: Expression) -> pykka.Future:
    """Hand work to actors round-robin"""
    return self.proxies[index % len(self.proxies)].run_expression(source, expr)

  def terminate_all(self) -> None:
    for actor_ref in self.actors:
      actor_ref.stop()
    self.actors.clear()
    self.proxies.clear()


def evaluate_many(
  interpreter: CellInterpreter,
  sources: Sequence[str],
  workers: int = DEFAULT_WORKERS,
  mode: str = "evaluate"
) -> List[Dict]:
  """
  Run many independent lines of Cell concurrently.

  Lines are parsed on the calling thread; parsed trees are evaluated by a
  pool of actors sharing interpreter's root environment. Outcomes come back
  in input order.
  """
  if workers < 1:
    raise ValueError(f"workers must be at least 1, got {workers}")
  if mode not in MODES:
    raise ValueError(f"Unknown mode '{mode}', expected one of {', '.join(MODES)}")

  pending: List[Any] = []
  for source in sources:
    try:
      pending.append((source, interpreter.parse(source)))
    except CellError as e:
      pending.append(make_outcome(source, error=e.message))

  jobs = [item for item in pending if isinstance(item, tuple)]
  if not jobs:
    return pending

  pool = EvaluatorPool()
  try:
    pool.start(interpreter, min(workers, len(jobs)), mode)
    futures = [pool.submit(i, source, expr) for i, (source, expr) in enumerate(jobs)]
    results = iter(pykka.get_all(futures))
  finally:
    pool.terminate_all()

  return [next(results) if isinstance(item, tuple) else item for item in pending]
