from .json_dataset import Dataset, load_dataset, parse_dataset

__all__ = ["Dataset", "load_dataset", "parse_dataset"]
