from avatar_api.models.assistant import Assistant, REMOTE_FIELDS
from avatar_api.models.files import AssistantFile
from avatar_api.services.tenant_service import client_for_assistant
from avatar_api.utils.errors import ConfigError
from openai import NotFoundError as RemoteNotFoundError, OpenAIError
import logging

logger = logging.getLogger(__name__)


def _drift(assistant, remote):
    drift = {}
    for key in REMOTE_FIELDS:
        local_value = getattr(assistant, key)
        remote_value = getattr(remote, key, None)
        if key in ("temperature", "top_p") and remote_value is not None:
            if abs(float(remote_value) - float(local_value)) < 1e-6:
                continue
        elif (remote_value or "") == (local_value or ""):
            continue
        drift[key] = {"local": local_value, "remote": remote_value}
    return drift


def _file_drift(api, assistant):
    if not assistant.vector_store_id:
        return {}
    recorded = {
        f.file_id for f in AssistantFile.query.filter_by(assistant_id=assistant.id).all()
    }
    remote_ids = {
        f.id for f in api.vector_stores.files.list(vector_store_id=assistant.vector_store_id)
    }
    result = {}
    if recorded - remote_ids:
        result["missing_remote_files"] = sorted(recorded - remote_ids)
    if remote_ids - recorded:
        result["unrecorded_remote_files"] = sorted(remote_ids - recorded)
    return result


def reconcile_assistants(dry_run=True, client_id=None):
    """
    Compare every live assistant with its remote copy.

    The local row is authoritative: unless dry_run is set, drifted remote
    configuration is overwritten with the local values. Missing remote
    assistants and vector store mismatches are only reported.
    """
    query = Assistant.query.filter_by(is_deleted=False)
    if client_id is not None:
        query = query.filter_by(client_id=client_id)

    report = {"checked": 0, "missing": [], "drift": {}, "files": {}, "repaired": [], "errors": {}}

    for assistant in query.order_by(Assistant.id).all():
        report["checked"] += 1
        asst_id = assistant.asst_id
        try:
            api = client_for_assistant(assistant)
            remote = api.beta.assistants.retrieve(asst_id)
        except RemoteNotFoundError:
            logger.error(f"Inconsistent state: assistant {asst_id} has no remote counterpart")
            report["missing"].append(asst_id)
            continue
        except (ConfigError, OpenAIError) as e:
            logger.error(f"Could not check assistant {asst_id}: {e}")
            report["errors"][asst_id] = str(e)
            continue

        drift = _drift(assistant, remote)
        try:
            file_drift = _file_drift(api, assistant)
        except OpenAIError as e:
            logger.error(f"Could not list vector store files for {asst_id}: {e}")
            report["errors"][asst_id] = str(e)
            file_drift = {}
        if file_drift:
            report["files"][asst_id] = file_drift

        if not drift:
            continue

        logger.warning(f"Assistant {asst_id} drifted: {sorted(drift)}")
        report["drift"][asst_id] = drift
        if dry_run:
            continue

        try:
            api.beta.assistants.update(asst_id, **{key: getattr(assistant, key) for key in REMOTE_FIELDS})
            report["repaired"].append(asst_id)
        except OpenAIError as e:
            logger.error(f"Could not repair assistant {asst_id}: {e}")
            report["errors"][asst_id] = str(e)

    return report
