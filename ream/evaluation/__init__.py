from ream.evaluation.evaluator import evaluate, run_program, tag_value

__all__ = ["evaluate", "run_program", "tag_value"]
