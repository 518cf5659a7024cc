from history_sync.aggregation.aggregator import aggregate, build_matrix, rank_actors
from history_sync.aggregation.summary import build_activity_summary

__all__ = ["aggregate", "build_activity_summary", "build_matrix", "rank_actors"]
