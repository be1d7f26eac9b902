"""Configuration classes for nodesel evaluation."""

from dataclasses import dataclass


@dataclass
class SelectionConfig:
    """Tuning knobs for selector evaluation.

    None of these change which nodes are selected; they only change how the
    work is scheduled.
    """

    # Worker threads for wide And/Or nodes (1 = evaluate sequentially)
    max_workers: int = 1

    # Minimum number of And/Or children before fanning out to workers
    parallel_min_children: int = 8

    # Create a per-call SelectionCache when the caller passes none
    use_cache: bool = False

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.parallel_min_children < 2:
            raise ValueError(
                f"parallel_min_children must be >= 2, got {self.parallel_min_children}"
            )

    def should_parallelize(self, n_children: int) -> bool:
        """Return True when a composite with n_children should use worker threads."""
        return self.max_workers > 1 and n_children >= self.parallel_min_children


# Global configuration instance
SELECTION_CONFIG = SelectionConfig()
