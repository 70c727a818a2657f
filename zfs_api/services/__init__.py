"""Backend adapters and the orchestration built on them"""
