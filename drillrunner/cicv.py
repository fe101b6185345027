"""Checking every exercise at once and writing a JSON report."""

from __future__ import annotations

import json
import os
import threading
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from pathlib import Path

from .exercise import Exercise
from .run import run
from .verify import ExerciseFailed

DEFAULT_OUTPUT_PATH = ".github/result/check_result.json"


@dataclass
class ExerciseResult:
    """Whether one exercise passed."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals for a checking run."""

    total_exercations: int
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """The full report written after checking."""

    statistics: ExerciseStatistics
    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None

    def to_dict(self) -> dict:
        return {
            "exercises": [asdict(result) for result in self.exercises],
            "user_name": self.user_name,
            "statistics": asdict(self.statistics),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


def _now() -> int:
    return int(time.time())


def cicv_verify(
    exercises: Sequence[Exercise], output_path: str | os.PathLike = DEFAULT_OUTPUT_PATH
) -> ExerciseCheckList:
    """Run every exercise concurrently, print progress and write the report."""
    started = _now()
    total = len(exercises)
    check_list = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()
    passed = 0

    def check(exercise: Exercise, task_started: int) -> None:
        nonlocal passed
        try:
            run(exercise, True)
        except ExerciseFailed:
            ok = False
        else:
            ok = True
        with lock:
            if ok:
                passed += 1
                print(f"{exercise.name}执行成功")
            else:
                print(f"{exercise.name}执行失败")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {passed}")
            print(f"当前修改试卷耗时: {_now() - task_started} s")
            check_list.exercises.append(ExerciseResult(name=exercise.name, result=ok))
            if ok:
                check_list.statistics.total_succeeds += 1
            else:
                check_list.statistics.total_failures += 1

    with ThreadPoolExecutor() as pool:
        futures = [pool.submit(check, exercise, _now()) for exercise in exercises]
        for future in futures:
            future.result()

    total_time = _now() - started
    print(
        "===============================试卷批改完成,总耗时: "
        f"{total_time} s; =================================="
    )
    check_list.statistics.total_time = total_time
    Path(output_path).write_text(check_list.to_json(), encoding="utf-8")
    return check_list