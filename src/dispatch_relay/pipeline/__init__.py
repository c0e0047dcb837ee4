"""
Dispatch -> poll/download -> upload pipeline.

Components:
- payloads.py: queue payload types per stage
- producer.py: DispatchProducer, the periodic dispatch loop
- workers.py: ResultWorker (poll + download) and UploadWorker (lock-guarded upload)
- orchestrator.py: PipelineOrchestrator, wires loops together and owns shutdown
"""
