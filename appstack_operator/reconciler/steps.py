"""
The reconcile steps of an AppStack, in canonical order.

Steps run top to bottom. The database and its credentials come first, then
the optional credential reset of a restored instance and the schema
migration, then exactly one shared filesystem sub-pipeline, and finally the
GitOps hand-off and the read-back of the application's state.
"""

import logging

import yaml

from appstack_operator import projectors
from appstack_operator.constants import (
    CHANGELOG_KEY,
    CLAIM_BINDING_POLL,
    CORE_V1,
    DATABASE_ENDPOINT_POLL,
    DATABASE_PHASE_POLL,
    DEPLOY_ERROR_DELAY,
    FILESYSTEM_ID_POLL,
    JOB_POLL,
    MINUTES,
    MOUNT_TARGET_POLL,
    PASSWORD_KEY,
    READY_REPLICAS_POLL,
    SECONDS,
    SERVICE_ADDRESS_POLL,
    VOLUME_ID_POLL,
    FilesystemStrategy,
    Phase,
    ResourceKind,
)
from appstack_operator.credentials import generate_password
from appstack_operator.data.shared_exceptions import (
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
    UnreadableInputError,
)
from appstack_operator.entities import StatusField
from appstack_operator.gitops import render_application_set
from appstack_operator.materializers.common import (
    database_secret_name,
    liquibase_secret_name,
    master_secret_name,
)
from appstack_operator.reconciler.context import ReconcileContext
from appstack_operator.reconciler.outcome import ADVANCE, Outcome, Retry
from appstack_operator.reconciler.pipeline import Step, run_steps

logger = logging.getLogger(__name__)


# Namespace and database


def ensure_namespace(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(ctx.build(ResourceKind.NAMESPACE))
    return ADVANCE


def ensure_database_prerequisites(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(ctx.build(ResourceKind.DB_PARAMETER_GROUP))
    ctx.ensure(ctx.build(ResourceKind.DB_SUBNET_GROUP))
    return ADVANCE


def ensure_database_credentials(ctx: ReconcileContext) -> Outcome:
    """Create the master and application secrets, generating passwords once."""
    record = ctx.record
    length = ctx.config.password_length
    if not ctx.exists(
        CORE_V1, "Secret", master_secret_name(record), record.namespace
    ):
        ctx.ensure(
            ctx.build(
                ResourceKind.MASTER_PASSWORD_SECRET,
                password=generate_password(length),
            )
        )
    if not ctx.exists(
        CORE_V1, "Secret", database_secret_name(record), record.namespace
    ):
        ctx.ensure(
            ctx.build(
                ResourceKind.DATABASE_SECRET,
                password=generate_password(length),
            )
        )
    return ADVANCE


def ensure_database_instance(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(ctx.build(ResourceKind.RDS_INSTANCE))
    return ADVANCE


def check_database_phase(ctx: ReconcileContext) -> Outcome:
    instance = ctx.fetch(ctx.build(ResourceKind.RDS_INSTANCE))
    phase = projectors.database_phase(instance)
    ctx.status.write(StatusField.DATABASE_PHASE, phase)
    if phase != Phase.AVAILABLE.value:
        return Retry(
            DATABASE_PHASE_POLL,
            reason=f"database phase is {phase or 'not reported'}",
        )
    return ADVANCE


def _read_secret(ctx: ReconcileContext, name: str) -> dict:
    return ctx.store.get(CORE_V1, "Secret", name, ctx.record.namespace)


def propagate_endpoint(ctx: ReconcileContext, address: str) -> None:
    """
    Point the application and migration secrets at ``address``.

    Existing passwords are carried over. The migration secret is created on
    first use because it can only be built once an address is known.
    """
    record = ctx.record
    master_password = projectors.secret_value(
        _read_secret(ctx, master_secret_name(record)), PASSWORD_KEY
    )
    database_secret = _read_secret(ctx, database_secret_name(record))
    app_password = projectors.secret_value(database_secret, PASSWORD_KEY)

    if projectors.secret_value(database_secret, "hostname") != address:
        logger.info("Updating %s database secret hostname", record.name)
        ctx.store.replace(
            ctx.build(
                ResourceKind.DATABASE_SECRET,
                password=app_password,
                hostname=address,
            )
        )

    try:
        liquibase_secret = _read_secret(ctx, liquibase_secret_name(record))
    except ObjectNotFoundError:
        liquibase_secret = None
    if liquibase_secret is None:
        ctx.ensure(
            ctx.build(
                ResourceKind.LIQUIBASE_SECRET,
                hostname=address,
                master_password=master_password,
                app_password=app_password,
                app_ro_password=generate_password(ctx.config.password_length),
            )
        )
    elif projectors.secret_value(liquibase_secret, "hostname") != address:
        logger.info("Updating %s migration secret hostname", record.name)
        ctx.store.replace(
            ctx.build(
                ResourceKind.LIQUIBASE_SECRET,
                hostname=address,
                master_password=master_password,
                app_password=app_password,
                app_ro_password=projectors.secret_value(
                    liquibase_secret, "parameter.appRoPassword"
                ),
            )
        )


def check_database_endpoint(ctx: ReconcileContext) -> Outcome:
    instance = ctx.fetch(ctx.build(ResourceKind.RDS_INSTANCE))
    address = projectors.database_address(instance)
    if not address:
        return Retry(
            DATABASE_ENDPOINT_POLL, reason="database endpoint not published"
        )
    propagate_endpoint(ctx, address)
    ctx.status.write(StatusField.DATABASE_ENDPOINT, address)
    return ADVANCE


# Credential reset of a restored instance


def restored_from_snapshot(ctx: ReconcileContext) -> bool:
    return bool(ctx.record.spec.database.snapshot_id)


def ensure_credential_reset_job(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(ctx.build(ResourceKind.SERVICE_ACCOUNT))
    ctx.ensure(ctx.build(ResourceKind.CREDENTIAL_RESET_JOB))
    return ADVANCE


def _await_job(
    ctx: ReconcileContext, kind: ResourceKind, field: StatusField
) -> Outcome:
    job = ctx.fetch(ctx.build(kind))
    succeeded = projectors.job_succeeded(job)
    if succeeded < 1:
        return Retry(
            JOB_POLL, reason=f"{job['metadata']['name']} has not succeeded"
        )
    ctx.status.write(field, Phase.SUCCEEDED.value)
    return ADVANCE


def await_credential_reset(ctx: ReconcileContext) -> Outcome:
    return _await_job(
        ctx,
        ResourceKind.CREDENTIAL_RESET_JOB,
        StatusField.CREDENTIAL_RESET_JOB,
    )


# Schema migration


def read_changelog(ctx: ReconcileContext) -> str:
    """
    Read the Liquibase changelog shipped with the operator.

    Raises:
        UnreadableInputError: If the file is missing, empty or not YAML
    """
    path = ctx.config.changelog_path
    try:
        changelog = path.read_text(encoding="utf-8")
        parsed = yaml.safe_load(changelog)
    except (OSError, UnicodeDecodeError) as e:
        raise UnreadableInputError(f"Cannot read changelog {path}: {e}") from e
    except yaml.YAMLError as e:
        raise UnreadableInputError(f"Changelog {path} is not YAML: {e}") from e
    if not parsed:
        raise UnreadableInputError(f"Changelog {path} is empty")
    return changelog


def ensure_migration_changelog(ctx: ReconcileContext) -> Outcome:
    """Create the changelog config map, updating it when the file changed."""
    config_map = ctx.build(
        ResourceKind.LIQUIBASE_CONFIG_MAP, changelog=read_changelog(ctx)
    )
    try:
        ctx.store.create(config_map)
    except ObjectAlreadyExistsError:
        existing = ctx.fetch(config_map)
        if projectors.config_map_value(existing) != config_map["data"][
            CHANGELOG_KEY
        ]:
            logger.info("Updating %s changelog config map", ctx.record.name)
            ctx.store.replace(config_map)
    return ADVANCE


def ensure_migration_job(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(ctx.build(ResourceKind.LIQUIBASE_JOB))
    return ADVANCE


def await_migration_job(ctx: ReconcileContext) -> Outcome:
    return _await_job(
        ctx, ResourceKind.LIQUIBASE_JOB, StatusField.MIGRATION_JOB
    )


# Shared filesystem: restored block volume served over NFS


def ensure_ebs_volume(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(ctx.build(ResourceKind.EBS_VOLUME, variant=ctx.filesystem))
    return ADVANCE


def await_volume_id(ctx: ReconcileContext) -> Outcome:
    volume = ctx.fetch(
        ctx.build(ResourceKind.EBS_VOLUME, variant=ctx.filesystem)
    )
    volume_id = projectors.volume_id(volume)
    if not volume_id:
        return Retry(VOLUME_ID_POLL, reason="volume id not assigned")
    ctx.observed["volume_id"] = volume_id
    return ADVANCE


def ensure_block_volume_claim(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(
        ctx.build(
            ResourceKind.BLOCK_VOLUME_PV,
            variant=ctx.filesystem,
            volume_id=ctx.observed["volume_id"],
        )
    )
    ctx.ensure(
        ctx.build(ResourceKind.BLOCK_VOLUME_CLAIM, variant=ctx.filesystem)
    )
    return ADVANCE


def ensure_nfs_service(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(ctx.build(ResourceKind.NFS_SERVICE))
    return ADVANCE


def ensure_nfs_server(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(
        ctx.build(ResourceKind.NFS_STATEFUL_SET, variant=ctx.filesystem)
    )
    return ADVANCE


def await_nfs_server(ctx: ReconcileContext) -> Outcome:
    server = ctx.fetch(
        ctx.build(ResourceKind.NFS_STATEFUL_SET, variant=ctx.filesystem)
    )
    if projectors.ready_replicas(server) < 1:
        return Retry(READY_REPLICAS_POLL, reason="NFS server not ready")
    return ADVANCE


def await_nfs_address(ctx: ReconcileContext) -> Outcome:
    service = ctx.fetch(ctx.build(ResourceKind.NFS_SERVICE))
    address = projectors.cluster_ip(service)
    if not address:
        return Retry(SERVICE_ADDRESS_POLL, reason="NFS service has no address")
    ctx.observed["nfs_address"] = address
    return ADVANCE


def ensure_shared_home_nfs(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(
        ctx.build(
            ResourceKind.NFS_PV,
            variant=ctx.filesystem,
            server=ctx.observed["nfs_address"],
        )
    )
    ctx.ensure(ctx.build(ResourceKind.NFS_CLAIM, variant=ctx.filesystem))
    return ADVANCE


def record_block_volume(ctx: ReconcileContext) -> Outcome:
    ctx.status.write(StatusField.EBS_ID, ctx.observed["volume_id"])
    return ADVANCE


# Shared filesystem: restored filesystem snapshot


def ensure_volume_snapshot(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(
        ctx.build(ResourceKind.VOLUME_SNAPSHOT_CONTENT, variant=ctx.filesystem)
    )
    ctx.ensure(ctx.build(ResourceKind.VOLUME_SNAPSHOT, variant=ctx.filesystem))
    return ADVANCE


def ensure_snapshot_claim(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(ctx.build(ResourceKind.SNAPSHOT_CLAIM, variant=ctx.filesystem))
    return ADVANCE


def await_claim_bound(ctx: ReconcileContext) -> Outcome:
    claim = ctx.fetch(
        ctx.build(ResourceKind.SNAPSHOT_CLAIM, variant=ctx.filesystem)
    )
    phase = projectors.claim_phase(claim)
    if phase != Phase.BOUND.value:
        return Retry(
            CLAIM_BINDING_POLL,
            reason=f"shared home claim is {phase or 'pending'}",
        )
    ctx.observed["volume_name"] = projectors.claim_volume_name(claim)
    return ADVANCE


def resolve_volume_handle(ctx: ReconcileContext) -> Outcome:
    volume = ctx.store.get(
        CORE_V1, "PersistentVolume", ctx.observed["volume_name"]
    )
    handle = projectors.volume_handle(volume)
    if not handle:
        return Retry(CLAIM_BINDING_POLL, reason="volume handle not published")
    ctx.observed["volume_handle"] = handle
    return ADVANCE


def record_filesystem_snapshot(ctx: ReconcileContext) -> Outcome:
    ctx.status.write(StatusField.FSX_ID, ctx.observed["volume_handle"])
    return ADVANCE


# Shared filesystem: new elastic filesystem


def ensure_file_system(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(ctx.build(ResourceKind.FILE_SYSTEM))
    return ADVANCE


def await_filesystem_id(ctx: ReconcileContext) -> Outcome:
    filesystem = ctx.fetch(ctx.build(ResourceKind.FILE_SYSTEM))
    filesystem_id = projectors.filesystem_id(filesystem)
    if not filesystem_id:
        return Retry(FILESYSTEM_ID_POLL, reason="filesystem id not assigned")
    ctx.observed["filesystem_id"] = filesystem_id
    return ADVANCE


def ensure_mount_targets(ctx: ReconcileContext) -> Outcome:
    """
    Create one mount target per subnet, in spec order.

    The first mount target that is not available stops the invocation, so
    later subnets are not touched until it is.
    """
    for index, subnet_id in enumerate(ctx.record.spec.network.subnet_ids):
        mount_target = ctx.build(
            ResourceKind.MOUNT_TARGET,
            filesystem_id=ctx.observed["filesystem_id"],
            subnet_id=subnet_id,
            index=index,
        )
        ctx.ensure(mount_target)
        state = projectors.mount_target_state(ctx.fetch(mount_target))
        if state != Phase.AVAILABLE.value:
            return Retry(
                MOUNT_TARGET_POLL,
                reason=(
                    f"mount target {mount_target['metadata']['name']} is "
                    f"{state or 'not reported'}"
                ),
            )
    return ADVANCE


def ensure_shared_home_efs(ctx: ReconcileContext) -> Outcome:
    ctx.ensure(
        ctx.build(
            ResourceKind.EFS_PV,
            variant=ctx.filesystem,
            filesystem_id=ctx.observed["filesystem_id"],
        )
    )
    ctx.ensure(ctx.build(ResourceKind.EFS_CLAIM, variant=ctx.filesystem))
    return ADVANCE


def record_file_system(ctx: ReconcileContext) -> Outcome:
    ctx.status.write(StatusField.EFS_ID, ctx.observed["filesystem_id"])
    return ADVANCE


BLOCK_VOLUME_STEPS = (
    Step("ensure_ebs_volume", ensure_ebs_volume, error_delay=5 * MINUTES),
    Step(
        "await_volume_id",
        await_volume_id,
        error_delay=5 * MINUTES,
        poll_delay=VOLUME_ID_POLL,
    ),
    Step(
        "ensure_block_volume_claim",
        ensure_block_volume_claim,
        error_delay=5 * MINUTES,
    ),
    Step("ensure_nfs_service", ensure_nfs_service, error_delay=5 * MINUTES),
    Step("ensure_nfs_server", ensure_nfs_server, error_delay=5 * MINUTES),
    Step(
        "await_nfs_server",
        await_nfs_server,
        error_delay=1 * MINUTES,
        poll_delay=READY_REPLICAS_POLL,
    ),
    Step(
        "await_nfs_address",
        await_nfs_address,
        error_delay=30 * SECONDS,
        poll_delay=SERVICE_ADDRESS_POLL,
    ),
    Step(
        "ensure_shared_home_nfs",
        ensure_shared_home_nfs,
        error_delay=1 * MINUTES,
    ),
    Step("record_block_volume", record_block_volume, error_delay=5 * SECONDS),
)

FILESYSTEM_SNAPSHOT_STEPS = (
    Step(
        "ensure_volume_snapshot",
        ensure_volume_snapshot,
        error_delay=30 * SECONDS,
    ),
    Step(
        "ensure_snapshot_claim",
        ensure_snapshot_claim,
        error_delay=30 * SECONDS,
    ),
    Step(
        "await_claim_bound",
        await_claim_bound,
        error_delay=30 * SECONDS,
        poll_delay=CLAIM_BINDING_POLL,
    ),
    Step(
        "resolve_volume_handle",
        resolve_volume_handle,
        error_delay=30 * SECONDS,
        poll_delay=CLAIM_BINDING_POLL,
    ),
    Step(
        "record_filesystem_snapshot",
        record_filesystem_snapshot,
        error_delay=5 * SECONDS,
    ),
)

NEW_FILESYSTEM_STEPS = (
    Step("ensure_file_system", ensure_file_system, error_delay=5 * MINUTES),
    Step(
        "await_filesystem_id",
        await_filesystem_id,
        error_delay=1 * MINUTES,
        poll_delay=FILESYSTEM_ID_POLL,
    ),
    Step(
        "ensure_mount_targets",
        ensure_mount_targets,
        error_delay=MOUNT_TARGET_POLL,
        poll_delay=MOUNT_TARGET_POLL,
    ),
    Step(
        "ensure_shared_home_efs",
        ensure_shared_home_efs,
        error_delay=30 * SECONDS,
    ),
    Step("record_file_system", record_file_system, error_delay=5 * SECONDS),
)

FILESYSTEM_PIPELINES = {
    FilesystemStrategy.RESTORE_BLOCK_VOLUME: BLOCK_VOLUME_STEPS,
    FilesystemStrategy.RESTORE_FILESYSTEM_SNAPSHOT: FILESYSTEM_SNAPSHOT_STEPS,
    FilesystemStrategy.NEW_FILESYSTEM: NEW_FILESYSTEM_STEPS,
}


def provision_shared_filesystem(ctx: ReconcileContext) -> Outcome:
    """Run the sub-pipeline of the selected filesystem strategy."""
    return run_steps(FILESYSTEM_PIPELINES[ctx.filesystem.strategy], ctx)


# Application


def deploy_application(ctx: ReconcileContext) -> Outcome:
    path = render_application_set(ctx.record, ctx.config)
    output = ctx.deployer.apply(path)
    logger.info("Applied ApplicationSet for %s: %s", ctx.record.name, output)
    return ADVANCE


def observe_application(ctx: ReconcileContext) -> Outcome:
    state = ctx.deployer.application_status(
        ctx.record.name, ctx.record.spec.argocd.namespace
    )
    ctx.status.write(StatusField.APP_SYNC, state.sync)
    ctx.status.write(StatusField.APP_HEALTH, state.health)
    if state.health != Phase.HEALTHY.value:
        logger.info(
            "Application %s is not healthy yet: %s",
            ctx.record.name,
            state.health or "unknown",
        )
    return ADVANCE


RECONCILE_STEPS = (
    Step("ensure_namespace", ensure_namespace, error_delay=1 * MINUTES),
    Step(
        "ensure_database_prerequisites",
        ensure_database_prerequisites,
        error_delay=1 * MINUTES,
    ),
    Step(
        "ensure_database_credentials",
        ensure_database_credentials,
        error_delay=1 * MINUTES,
    ),
    Step(
        "ensure_database_instance",
        ensure_database_instance,
        error_delay=1 * MINUTES,
    ),
    Step(
        "check_database_phase",
        check_database_phase,
        error_delay=5 * SECONDS,
        poll_delay=DATABASE_PHASE_POLL,
    ),
    Step(
        "check_database_endpoint",
        check_database_endpoint,
        error_delay=5 * SECONDS,
        poll_delay=DATABASE_ENDPOINT_POLL,
    ),
    Step(
        "ensure_credential_reset_job",
        ensure_credential_reset_job,
        error_delay=5 * MINUTES,
        condition=restored_from_snapshot,
    ),
    Step(
        "await_credential_reset",
        await_credential_reset,
        error_delay=5 * SECONDS,
        poll_delay=JOB_POLL,
        condition=restored_from_snapshot,
    ),
    Step(
        "ensure_migration_changelog",
        ensure_migration_changelog,
        error_delay=10 * SECONDS,
    ),
    Step("ensure_migration_job", ensure_migration_job, error_delay=5 * MINUTES),
    Step(
        "await_migration_job",
        await_migration_job,
        error_delay=30 * SECONDS,
        poll_delay=JOB_POLL,
    ),
    Step("provision_shared_filesystem", provision_shared_filesystem),
    Step(
        "deploy_application",
        deploy_application,
        error_delay=DEPLOY_ERROR_DELAY,
    ),
    Step(
        "observe_application",
        observe_application,
        error_delay=5 * MINUTES,
    ),
)
