import io
import logging

import openai

from avatar_api import db
from avatar_api.models.files import AssistantFile
from avatar_api.services.reconcile_service import reconcile_assistants


def test_in_sync_assistants_report_nothing(create_assistant):
    create_assistant()

    report = reconcile_assistants()

    assert report == {"checked": 1, "missing": [], "drift": {}, "files": {}, "repaired": [], "errors": {}}


def test_drift_is_reported_and_repaired_from_local_values(create_assistant, remote):
    asst_id = create_assistant(temperature=0.5)["asst_id"]
    remote.assistant_store[asst_id].update(name="Edited remotely", temperature=0.9)

    report = reconcile_assistants(dry_run=True)
    assert report["drift"][asst_id] == {
        "name": {"local": "Bot", "remote": "Edited remotely"},
        "temperature": {"local": 0.5, "remote": 0.9},
    }
    assert report["repaired"] == []
    assert remote.assistant_store[asst_id]["name"] == "Edited remotely"

    report = reconcile_assistants(dry_run=False)
    assert report["repaired"] == [asst_id]
    assert remote.assistant_store[asst_id]["name"] == "Bot"
    assert remote.assistant_store[asst_id]["temperature"] == 0.5


def test_missing_remote_assistant_is_logged(create_assistant, remote, caplog):
    asst_id = create_assistant()["asst_id"]
    del remote.assistant_store[asst_id]

    with caplog.at_level(logging.ERROR):
        report = reconcile_assistants(dry_run=False)

    assert report["missing"] == [asst_id]
    assert any("Inconsistent state" in r.getMessage() for r in caplog.records)


def test_soft_deleted_assistants_are_skipped(client, user_headers, create_assistant, remote):
    asst_id = create_assistant()["asst_id"]
    client.put(f"/softdelete_asst/{asst_id}", headers=user_headers)
    del remote.assistant_store[asst_id]

    assert reconcile_assistants()["checked"] == 0


def test_vector_store_mismatches_are_reported(client, user_headers, create_assistant, remote):
    asst_id = create_assistant()["asst_id"]
    client.post(f"/upload_files/{asst_id}", data={"files": [(io.BytesIO(b"a"), "a.txt")]},
                headers=user_headers, content_type="multipart/form-data")
    db.session.add(AssistantFile(assistant_id=1, file_id="file_ghost", vector_store_id="vs_1",
                                 file_name="ghost.txt", stored_name="0a1b2c_ghost.txt", file_size=1))
    db.session.commit()
    remote.store_files["vs_1"].append("file_stray")

    report = reconcile_assistants()

    assert report["files"][asst_id] == {
        "missing_remote_files": ["file_ghost"],
        "unrecorded_remote_files": ["file_stray"]
    }


def test_remote_errors_are_collected_per_assistant(create_assistant, remote):
    asst_id = create_assistant()["asst_id"]
    remote.failures["assistants.retrieve"] = openai.OpenAIError("unavailable")

    report = reconcile_assistants()

    assert report["errors"] == {asst_id: "unavailable"}
    assert report["missing"] == []
