from avatar_api import db
from avatar_api.models.files import AssistantFile, ThreadFile
from avatar_api.services.tenant_service import client_for_assistant, call_remote
from avatar_api.utils.errors import ValidationError, UpstreamError, PartialFailureError, StorageError
from flask import current_app
from openai import OpenAIError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename
import os
import uuid
import logging

logger = logging.getLogger(__name__)


def upload_path(file_name):
    return os.path.join(current_app.config["UPLOAD_FOLDER"], secure_filename(file_name))


def _read_uploads(uploads):
    payloads = []
    for storage in uploads:
        name = secure_filename(storage.filename or "")
        if not name:
            raise ValidationError(f"Invalid file name: {storage.filename!r}")
        payloads.append((name, storage.read()))
    return payloads


def _ensure_vector_store(api, assistant):
    if assistant.vector_store_id:
        return assistant.vector_store_id

    store = call_remote("create vector store", api.vector_stores.create, name=f"{assistant.asst_id} files")
    # Recorded right away so a failed batch does not leave an unknown store behind
    assistant.vector_store_id = store.id
    db.session.commit()
    logger.info(f"Created vector store {store.id} for assistant {assistant.asst_id}")
    return store.id


def _discard_remote_files(api, file_ids):
    """Best-effort removal of uploaded files. Returns the ids that could not be removed."""
    leftovers = []
    for file_id in file_ids:
        try:
            api.files.delete(file_id)
        except OpenAIError as e:
            logger.error(f"Could not remove uploaded file {file_id}: {e}")
            leftovers.append(file_id)
    return leftovers


def stored_name_for(file_name):
    # Unique per upload so tenants sharing a file name never share a copy
    return f"{uuid.uuid4().hex[:12]}_{file_name}"


def _remove_local_copies(stored_names):
    for stored_name in stored_names:
        path = upload_path(stored_name)
        if os.path.isfile(path):
            os.remove(path)


def upload_files(assistant, uploads):
    """
    Index uploaded files in the assistant's vector store:

    1. reuse the recorded store or create one
    2. upload each file, keeping the ids the API returns
    3. add them to the store as one batch and wait for indexing
    4. keep a local copy of each file under a unique stored name
    5. record one assistant_files row per file
    6. attach the store to the assistant's file_search tool resources
    """
    if not uploads:
        raise ValidationError("No files uploaded")
    payloads = _read_uploads(uploads)

    api = client_for_assistant(assistant)
    vector_store_id = _ensure_vector_store(api, assistant)

    uploaded = []
    written = []
    try:
        for name, data in payloads:
            remote_file = api.files.create(file=(name, data), purpose="assistants")
            uploaded.append((remote_file.id, name, len(data), stored_name_for(name)))

        batch = api.vector_stores.file_batches.create_and_poll(
            vector_store_id=vector_store_id,
            file_ids=[file_id for file_id, _, _, _ in uploaded]
        )
        failed = getattr(batch.file_counts, "failed", 0) if batch.file_counts else 0
        if batch.status != "completed" or failed:
            raise UpstreamError(
                f"File indexing ended with status '{batch.status}'",
                details={"failed_files": failed}
            )

        for (_, _, _, stored_name), (_, data) in zip(uploaded, payloads):
            with open(upload_path(stored_name), "wb") as fh:
                fh.write(data)
            written.append(stored_name)

        records = [
            AssistantFile(
                assistant_id=assistant.id,
                file_id=file_id,
                vector_store_id=vector_store_id,
                file_name=name,
                stored_name=stored_name,
                file_size=size
            )
            for file_id, name, size, stored_name in uploaded
        ]
        db.session.add_all(records)
        db.session.commit()

    except (OpenAIError, UpstreamError, SQLAlchemyError, OSError) as e:
        db.session.rollback()
        logger.error(f"Upload to {vector_store_id} for {assistant.asst_id} failed: {e}")
        _remove_local_copies(written)
        leftovers = _discard_remote_files(api, [file_id for file_id, _, _, _ in uploaded])
        if leftovers:
            raise PartialFailureError(
                "Upload failed and some remote files could not be removed",
                details={"vector_store_id": vector_store_id, "file_ids": leftovers}
            ) from e
        if isinstance(e, OpenAIError):
            raise UpstreamError(f"Failed to upload files: {e}") from e
        if isinstance(e, OSError):
            raise StorageError("Could not store local copies of the uploaded files") from e
        raise

    call_remote(
        "attach vector store",
        api.beta.assistants.update,
        assistant.asst_id,
        tool_resources={"file_search": {"vector_store_ids": [vector_store_id]}}
    )

    logger.info(f"Indexed {len(records)} files into {vector_store_id} for {assistant.asst_id}")
    return records


def delete_assistant_file(record):
    """
    Remove the vector store entry, the local copy and the metadata row.
    """
    asst_id = record.assistant.asst_id
    api = client_for_assistant(record.assistant)

    call_remote(
        "delete vector store file",
        api.vector_stores.files.delete,
        file_id=record.file_id,
        vector_store_id=record.vector_store_id
    )
    try:
        api.files.delete(record.file_id)
    except OpenAIError as e:
        # The store entry is gone; the raw file only costs storage
        logger.warning(f"Could not delete remote file {record.file_id}: {e}")

    _remove_local_copies([record.stored_name])

    try:
        db.session.delete(record)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PartialFailureError(
            "File was removed remotely but its record remains",
            details={"asst_id": asst_id, "file_id": record.file_id}
        ) from e


def save_thread_file(thread, storage):
    original_name = storage.filename or ""
    safe_name = secure_filename(original_name)
    if not safe_name:
        raise ValidationError(f"Invalid file name: {original_name!r}")

    stored_name = stored_name_for(safe_name)
    data = storage.read()
    with open(upload_path(stored_name), "wb") as fh:
        fh.write(data)

    record = ThreadFile(
        thread_id=thread.id,
        file_name=stored_name,
        original_name=original_name,
        file_size=len(data),
        mime_type=storage.mimetype
    )
    try:
        db.session.add(record)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        os.remove(upload_path(stored_name))
        raise
    return record
