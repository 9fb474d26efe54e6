from odatastitch.assemble.graph import AssemblyReport, FlatDataset, assemble_schedule_tasks, index_by_id

__all__ = ["AssemblyReport", "FlatDataset", "assemble_schedule_tasks", "index_by_id"]
