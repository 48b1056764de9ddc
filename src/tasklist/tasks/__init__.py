"""
Task persistence subsystem.

Components:
- task_models.py: data structures (Task, StorageData, cache states)
- validation.py: record/envelope validation with Ok/Err results
- storage_codec.py: versioned JSON envelope (create/serialize/parse)
- memory_repository.py: in-memory repository with fault injection (tests)
- persistent_repository.py: key-value-store-backed repository (production)
- errors.py: error taxonomy
"""
