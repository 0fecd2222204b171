#!/usr/bin/env python3
"""
Kafka Partition Reassignment Tool
=================================
Reassigns the partitions of every topic to a given broker list, one
operator-supervised step at a time. Used when brokers are added to or removed
from a cluster.

Each step shells out to the stock Kafka admin scripts and stages its output in
a working directory, so the next step (or a later rollback) can pick it up:

    topics.json             - all topics, input to plan generation
    partitions.json         - the active reassignment plan
    partitions_backup.json  - active plan saved before preparing a rollback
    rollback.json           - assignment captured before the last execute

Usage: python kafka_partition_reassignment.py (-g | -v | -e | -r | -l) [-b brokers] [-z zk_host]

Version: 1.0.0
"""

import abc
import argparse
import json
import logging
import os
import shutil
import subprocess
import sys
import tempfile
import traceback
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import yaml


__version__ = "1.0.0"

DEFAULT_WORK_DIR = "/tmp/kafka"
DEFAULT_LOG_DIR = "./logs"

TOPICS_FILE = "topics.json"
PARTITIONS_FILE = "partitions.json"
PARTITIONS_BACKUP_FILE = "partitions_backup.json"
ROLLBACK_FILE = "rollback.json"

PROPOSED_PLAN_MARKER = "Proposed partition"

# Lines kafka-reassign-partitions.sh --execute prints around the current assignment
EXECUTE_BANNERS = (
    "Current partition replica assignment",
    "Save this to use as the --reassignment-json-file option during rollback",
    "Successfully started reassignment of partitions",
    "Successfully started partition reassignment",
)

KAFKA_BIN_CANDIDATES = [
    "/usr/lib/kafka/bin",
    "/usr/odp/current/kafka-broker/bin",
    "/usr/hdp/current/kafka-broker/bin",
    "/opt/kafka/bin",
    "/usr/local/kafka/bin",
]


# ==============================================================================
# EXCEPTIONS
# ==============================================================================

class ReassignmentError(Exception):
    """Base class for errors raised while driving a reassignment."""


class ConfigError(ReassignmentError):
    pass


class MissingArtifactError(ReassignmentError):
    """A step was started without the file an earlier step should have staged."""


class PlanParseError(ReassignmentError):
    """Tool output did not have the shape the parser expects."""


class KafkaToolError(ReassignmentError):
    """An admin script failed, timed out or could not be started."""

    def __init__(self, cmd: List[str], returncode: Optional[int],
                 stdout: str = "", stderr: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        tool = os.path.basename(cmd[0]) if cmd else "command"
        if returncode is None:
            message = f"{tool} did not complete: {stderr.strip()}"
        else:
            message = f"{tool} exited with code {returncode}"
        super().__init__(message)


# ==============================================================================
# LOGGING
# ==============================================================================

def setup_logging(log_dir: str = DEFAULT_LOG_DIR, log_level: str = "INFO") -> logging.Logger:
    """
    Configure logging for the script.

    Args:
        log_dir: Directory to store log files
        log_level: Level for the console handler; the file always gets DEBUG

    Returns:
        Configured logger instance
    """
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"kafka_partition_reassignment_{timestamp}.log")

    logger = logging.getLogger("KafkaPartitionReassignment")
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    # File handler - detailed logs
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s'
    ))

    # Console handler - important logs only
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level.upper()))
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.debug(f"Logging initialized. Log file: {log_file}")
    return logger


# ==============================================================================
# CONFIGURATION
# ==============================================================================

class KafkaConfig:
    """Optional YAML configuration; command-line flags take precedence."""

    DEFAULTS = {
        'zookeeper_server': None,
        'kafka_bin_path': None,
        'work_dir': DEFAULT_WORK_DIR,
        'log_dir': DEFAULT_LOG_DIR,
        'command_timeout': None,
    }

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file
        self.config = dict(self.DEFAULTS)
        if config_file:
            self.config.update(self._load_config())
        self._validate_config()

    def _load_config(self) -> Dict:
        """Load configuration from YAML file."""
        try:
            with open(self.config_file, 'r') as f:
                config = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigError(f"Configuration file not found: {self.config_file}")
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file: {e}")

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file {self.config_file} must contain a mapping")
        return config

    def _validate_config(self) -> None:
        timeout = self.config.get('command_timeout')
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ConfigError(f"command_timeout must be a positive number of seconds, got {timeout!r}")

        for key in ('work_dir', 'log_dir'):
            if not self.config.get(key):
                self.config[key] = self.DEFAULTS[key]

    def get(self, key: str, default=None):
        """Get configuration value."""
        value = self.config.get(key)
        return default if value is None else value


# ==============================================================================
# AUTO-DETECTION UTILITIES
# ==============================================================================

def auto_detect_kafka_bin() -> Optional[str]:
    """
    Auto-detect the directory holding the Kafka admin scripts.

    Priority:
    1. $KAFKA_HOME/bin
    2. Well-known install locations (plain tarball, ODP/HDP current links)
    3. kafka-reassign-partitions.sh on PATH

    Returns:
        Path to Kafka bin directory or None
    """
    candidates = list(KAFKA_BIN_CANDIDATES)
    kafka_home = os.getenv('KAFKA_HOME')
    if kafka_home:
        candidates.insert(0, os.path.join(kafka_home, 'bin'))

    for path in candidates:
        if os.path.exists(os.path.join(path, 'kafka-reassign-partitions.sh')):
            return path

    tool_path = shutil.which('kafka-reassign-partitions.sh')
    if tool_path:
        return os.path.dirname(tool_path)

    return None


def resolve_kafka_bin(configured: Optional[str], logger: logging.Logger) -> str:
    """Pick the Kafka bin directory; '' means invoke the scripts from PATH."""
    if configured:
        if not os.path.isdir(configured):
            logger.warning(f"⚠ Configured Kafka bin directory does not exist: {configured}")
        return configured

    logger.info("kafka_bin_path not configured, attempting auto-detection...")
    kafka_bin = auto_detect_kafka_bin()
    if kafka_bin:
        logger.info(f"✓ Auto-detected Kafka bin directory: {kafka_bin}")
        return kafka_bin

    logger.warning("Kafka tools not found in standard locations, using PATH")
    return ''


# ==============================================================================
# TOOL OUTPUT PARSING
# ==============================================================================

def parse_topic_list(output: str) -> List[str]:
    """Topic names from kafka-topics.sh --list, in listing order."""
    topics = []
    for line in output.splitlines():
        line = line.strip()
        if not line or 'marked for deletion' in line:
            continue
        topics.append(line)
    return topics


def build_topics_descriptor(topics: List[str]) -> Dict:
    return {"topics": [{"topic": topic} for topic in topics], "version": 1}


def _first_json_document(text: str) -> str:
    """Return the first JSON object in text, starting at the first line that opens one."""
    lines = text.splitlines()
    for idx, line in enumerate(lines):
        if line.lstrip().startswith('{'):
            break
    else:
        raise PlanParseError("No JSON document found in tool output")

    body = "\n".join(lines[idx:]).lstrip()
    try:
        _, end = json.JSONDecoder().raw_decode(body)
    except ValueError as e:
        raise PlanParseError(f"Tool output is not valid JSON: {e}")
    return body[:end] + "\n"


def extract_proposed_plan(output: str) -> str:
    """
    Pull the proposed assignment out of kafka-reassign-partitions.sh --generate.

    The tool prints the current assignment first and the proposed one second,
    each introduced by a header line. Everything up to and including the
    "Proposed partition ..." header is dropped, as are any blank or header
    lines before the JSON body.

    Args:
        output: stdout of the generate command

    Returns:
        The proposed plan as JSON text

    Raises:
        PlanParseError: marker missing or no parseable JSON after it
    """
    lines = output.splitlines()
    for idx, line in enumerate(lines):
        if PROPOSED_PLAN_MARKER in line:
            break
    else:
        raise PlanParseError(f"'{PROPOSED_PLAN_MARKER}' section not found in generate output")

    return _first_json_document("\n".join(lines[idx + 1:]))


def extract_rollback_plan(output: str) -> str:
    """
    Pull the pre-change assignment out of kafka-reassign-partitions.sh --execute.

    Known banner lines and blank lines are filtered out; what remains must
    be the current assignment as JSON.
    """
    kept = [
        line for line in output.splitlines()
        if line.strip() and not any(banner in line for banner in EXECUTE_BANNERS)
    ]
    return _first_json_document("\n".join(kept))


def summarize_verify_output(output: str) -> Dict[str, int]:
    """Count partitions per state in kafka-reassign-partitions.sh --verify output."""
    summary = {'completed': 0, 'in_progress': 0, 'failed': 0}
    for line in output.splitlines():
        if not line.startswith("Reassignment of partition"):
            continue
        if "in progress" in line:
            summary['in_progress'] += 1
        elif "failed" in line:
            summary['failed'] += 1
        elif "completed successfully" in line or "is complete" in line:
            summary['completed'] += 1
    return summary


def summarize_plan(plan_text: str) -> Dict:
    """Partition count, topics and brokers referenced by a plan."""
    try:
        partitions = json.loads(plan_text).get('partitions', [])
        return {
            'partitions': len(partitions),
            'topics': sorted({p['topic'] for p in partitions}),
            'brokers': sorted({b for p in partitions for b in p.get('replicas', [])}),
        }
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise PlanParseError(f"Malformed reassignment plan: {e!r}")


# ==============================================================================
# ADMIN CLIENT
# ==============================================================================

class ToolResult:
    """Exit status and captured output of one admin command."""

    def __init__(self, returncode: int, stdout: str = "", stderr: str = ""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ReassignmentAdmin(abc.ABC):
    """The cluster operations the workflow needs, one method per admin capability."""

    @abc.abstractmethod
    def list_topics(self) -> List[str]:
        pass

    @abc.abstractmethod
    def generate_plan(self, topics_file: str, brokers: str) -> str:
        """Return the proposed plan for the topics in topics_file as JSON text."""

    @abc.abstractmethod
    def verify_plan(self, plan_file: str) -> ToolResult:
        pass

    @abc.abstractmethod
    def execute_plan(self, plan_file: str) -> Tuple[ToolResult, Optional[str]]:
        """Start the reassignment; also return the captured previous assignment, if any."""

    @abc.abstractmethod
    def elect_leaders(self) -> ToolResult:
        pass


class KafkaCLI(ReassignmentAdmin):
    """Admin client backed by the Kafka shell scripts, talking to ZooKeeper."""

    def __init__(self, zookeeper: str, logger: logging.Logger, kafka_bin: str = '',
                 timeout: Optional[float] = None):
        self.zookeeper = zookeeper
        self.logger = logger
        self.kafka_bin = kafka_bin
        self.timeout = timeout
        self.logger.info(f"Using Kafka tools: {self.kafka_bin or 'from PATH'}")

    def _tool(self, name: str) -> str:
        """Get full path to tool."""
        return os.path.join(self.kafka_bin, name) if self.kafka_bin else name

    def _run(self, cmd: List[str], check: bool = True) -> ToolResult:
        """Execute command, raising KafkaToolError if it cannot run (or fails when check is set)."""
        self.logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            raise KafkaToolError(cmd, None, stderr=f"Command timed out after {self.timeout} seconds")
        except FileNotFoundError:
            raise KafkaToolError(cmd, None, stderr=f"Command not found: {cmd[0]}")

        self.logger.debug(f"Exit code: {result.returncode}")
        if result.stdout:
            self.logger.debug(f"stdout:\n{result.stdout}")
        if result.stderr:
            self.logger.debug(f"stderr:\n{result.stderr}")

        if check and result.returncode != 0:
            raise KafkaToolError(cmd, result.returncode, result.stdout, result.stderr)
        return ToolResult(result.returncode, result.stdout, result.stderr)

    def _reassign_cmd(self, *args: str) -> List[str]:
        return [self._tool('kafka-reassign-partitions.sh'), '--zookeeper', self.zookeeper] + list(args)

    def list_topics(self) -> List[str]:
        result = self._run([
            self._tool('kafka-topics.sh'),
            '--list',
            '--zookeeper', self.zookeeper
        ])
        return parse_topic_list(result.stdout)

    def generate_plan(self, topics_file: str, brokers: str) -> str:
        result = self._run(self._reassign_cmd(
            '--topics-to-move-json-file', topics_file,
            '--broker-list', brokers,
            '--generate'
        ))
        return extract_proposed_plan(result.stdout)

    def verify_plan(self, plan_file: str) -> ToolResult:
        return self._run(self._reassign_cmd(
            '--reassignment-json-file', plan_file,
            '--verify'
        ), check=False)

    def execute_plan(self, plan_file: str) -> Tuple[ToolResult, Optional[str]]:
        result = self._run(self._reassign_cmd(
            '--reassignment-json-file', plan_file,
            '--execute'
        ), check=False)

        try:
            rollback = extract_rollback_plan(result.stdout)
        except PlanParseError as e:
            self.logger.debug(f"No current assignment in execute output: {e}")
            rollback = None
        return result, rollback

    def elect_leaders(self) -> ToolResult:
        return self._run([
            self._tool('kafka-preferred-replica-election.sh'),
            '--zookeeper', self.zookeeper
        ], check=False)


# ==============================================================================
# WORKSPACE
# ==============================================================================

def write_atomic(path: str, content: str) -> None:
    """Write content to a temporary file next to path, then rename it into place."""
    fd, tmp_path = tempfile.mkstemp(prefix=".", suffix=".tmp", dir=os.path.dirname(path) or ".")
    try:
        with os.fdopen(fd, 'w') as f:
            f.write(content)
        # mkstemp creates 0600; give the artifact the usual umask-derived mode
        umask = os.umask(0)
        os.umask(umask)
        os.chmod(tmp_path, 0o666 & ~umask)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)


class Workspace:
    """The working directory and the artifacts staged in it between steps."""

    def __init__(self, work_dir: str = DEFAULT_WORK_DIR):
        self.work_dir = work_dir
        self.topics_file = os.path.join(work_dir, TOPICS_FILE)
        self.partitions_file = os.path.join(work_dir, PARTITIONS_FILE)
        self.partitions_backup_file = os.path.join(work_dir, PARTITIONS_BACKUP_FILE)
        self.rollback_file = os.path.join(work_dir, ROLLBACK_FILE)

    def ensure(self) -> None:
        os.makedirs(self.work_dir, exist_ok=True)

    def has_plan(self) -> bool:
        return os.path.isfile(self.partitions_file)

    def has_rollback(self) -> bool:
        return os.path.isfile(self.rollback_file)

    def require_plan(self) -> None:
        if not self.has_plan():
            raise MissingArtifactError(
                f"No partition reassignment plan found in {self.partitions_file}. "
                "Generate one first (-g)"
            )

    def read_plan(self) -> str:
        with open(self.partitions_file, 'r') as f:
            return f.read()

    def write_topics(self, topics: List[str]) -> None:
        self.ensure()
        write_atomic(self.topics_file, json.dumps(build_topics_descriptor(topics), indent=2) + "\n")

    def write_plan(self, plan_text: str) -> None:
        self.ensure()
        write_atomic(self.partitions_file, plan_text)

    def write_rollback(self, plan_text: str) -> None:
        self.ensure()
        write_atomic(self.rollback_file, plan_text)


# ==============================================================================
# WORKFLOW
# ==============================================================================

class ReassignmentWorkflow:
    """Runs one step of the reassignment procedure against a workspace."""

    def __init__(self, admin: Optional[ReassignmentAdmin], workspace: Workspace,
                 logger: logging.Logger):
        self.admin = admin
        self.workspace = workspace
        self.logger = logger

    def run(self, mode: str, brokers: Optional[str] = None) -> bool:
        """
        Execute the step selected by mode.

        Args:
            mode: generate, verify, execute, rollback or leader_election
            brokers: Comma separated broker ids, used by generate only

        Returns:
            True if the step succeeded
        """
        actions = {
            'generate': lambda: self.generate(brokers),
            'verify': self.verify,
            'execute': self.execute,
            'rollback': self.prepare_rollback,
            'leader_election': self.elect_leaders,
        }

        self.logger.info(f"Selected mode: {mode}...")
        try:
            success = actions[mode]()
        except KafkaToolError as e:
            self._pass_through(ToolResult(e.returncode or 1, e.stdout, e.stderr))
            self.logger.error(f"✗ {e}")
            return False
        except ReassignmentError as e:
            self.logger.error(f"✗ {e}")
            return False

        if success:
            self.logger.info("Done...")
        return success

    def _pass_through(self, result: ToolResult) -> None:
        """Hand tool output to the operator unchanged."""
        if result.stdout:
            sys.stdout.write(result.stdout)
            sys.stdout.flush()
        if result.stderr:
            sys.stderr.write(result.stderr)
            sys.stderr.flush()

    def _log_plan(self, plan_text: str) -> None:
        # Informational only, the admin script has the final say on the plan
        try:
            summary = summarize_plan(plan_text)
        except PlanParseError as e:
            self.logger.warning(f"⚠ Could not summarize plan: {e}")
            return
        self.logger.info(
            f"Plan covers {summary['partitions']} partitions of {len(summary['topics'])} topics "
            f"on brokers {summary['brokers']}"
        )

    def generate(self, brokers: str) -> bool:
        """List all topics and stage a plan spreading them over brokers."""
        topics = self.admin.list_topics()
        self.logger.info(f"Found {len(topics)} topics")
        self.workspace.write_topics(topics)
        self.logger.info(f"✓ Topic list written to {self.workspace.topics_file}")

        self.logger.info(f"Generating partition reassignment for brokers {brokers}")
        plan = self.admin.generate_plan(self.workspace.topics_file, brokers)
        self.workspace.write_plan(plan)
        self.logger.info(f"✓ Reassignment plan written to {self.workspace.partitions_file}")
        self._log_plan(plan)
        return True

    def verify(self) -> bool:
        self.workspace.require_plan()
        result = self.admin.verify_plan(self.workspace.partitions_file)
        self._pass_through(result)

        if not result.ok:
            self.logger.error(f"✗ Verification failed with exit code {result.returncode}")
            return False

        summary = summarize_verify_output(result.stdout)
        self.logger.info(
            f"Progress: {summary['completed']} completed, {summary['in_progress']} in progress, "
            f"{summary['failed']} failed"
        )
        return True

    def execute(self) -> bool:
        """Start applying the active plan, keeping the previous assignment for rollback."""
        self.workspace.require_plan()
        self._log_plan(self.workspace.read_plan())

        result, rollback = self.admin.execute_plan(self.workspace.partitions_file)
        self._pass_through(result)

        if rollback is None:
            self.logger.error(
                f"✗ Current assignment not found in execute output, "
                f"{self.workspace.rollback_file} left unchanged"
            )
            return False

        self.workspace.write_rollback(rollback)
        self.logger.info(f"✓ Rollback configuration saved to {self.workspace.rollback_file}")

        if not result.ok:
            self.logger.error(f"✗ Reassignment failed with exit code {result.returncode}")
            return False

        self.logger.info("Monitor progress with the verify step (-v)")
        return True

    def prepare_rollback(self) -> bool:
        """
        Stage the captured rollback configuration as the active plan.

        The active plan is moved to the backup path first. Nothing is applied
        here; the rollback takes effect when the execute step is run again.
        """
        if not self.workspace.has_rollback():
            raise MissingArtifactError(
                f"No rollback configuration found in {self.workspace.rollback_file}. Terminating..."
            )

        if self.workspace.has_plan():
            os.replace(self.workspace.partitions_file, self.workspace.partitions_backup_file)
            self.logger.info(f"✓ Active plan backed up to {self.workspace.partitions_backup_file}")
        else:
            self.logger.warning(f"⚠ No active plan in {self.workspace.partitions_file} to back up")

        shutil.copyfile(self.workspace.rollback_file, self.workspace.partitions_file)
        self.logger.info(f"✓ Rollback configuration staged as {self.workspace.partitions_file}")
        self.logger.info("To apply the rollback continue from the execute step (-e)")
        return True

    def elect_leaders(self) -> bool:
        result = self.admin.elect_leaders()
        self._pass_through(result)

        if not result.ok:
            self.logger.error(f"✗ Preferred leader election failed with exit code {result.returncode}")
            return False
        return True


# ==============================================================================
# CLI
# ==============================================================================

PROCEDURE = """
Reassigning topic partitions is a multi-step process. The intermediate steps
save files under the work directory (default {work_dir}) which the following
steps use. The procedure is:

  1. Generate the partition reassignment file
       %(prog)s -g -b "1,2,3,4" -z zk1.acme.org:2181

  2. Verify the partition reassignment file has no errors
       %(prog)s -v -z zk1.acme.org:2181
     This warns that the actual assignment differs from the file, which is
     expected since nothing has been applied yet

  3. Execute the partition reassignment
       %(prog)s -e -z zk1.acme.org:2181

  4. Monitor progress with the verification step
       %(prog)s -v -z zk1.acme.org:2181

  5. Once the reassignment has completed, run a preferred leader election so
     leaders are spread in line with the new assignment
       %(prog)s -l -z zk1.acme.org:2181

To roll back after step 3, prepare the rollback with
       %(prog)s -r
and continue from step 3 onwards.
""".format(work_dir=DEFAULT_WORK_DIR)


class ReassignmentArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message):
        self.print_help(sys.stderr)
        self.exit(1, f"\n{self.prog}: error: {message}\n")


class SelectMode(argparse.Action):
    """Store the mode, rejecting any second mode flag including a repeat of the first."""

    def __init__(self, option_strings, dest, const, **kwargs):
        super().__init__(option_strings, dest, nargs=0, const=const, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        if getattr(namespace, self.dest, None) is not None:
            parser.error(f"argument {option_string}: only one mode may be given")
        setattr(namespace, self.dest, self.const)


def build_parser() -> ReassignmentArgumentParser:
    parser = ReassignmentArgumentParser(
        description='Reassign topic partitions to the given broker list',
        epilog=PROCEDURE,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    modes = parser.add_mutually_exclusive_group(required=True)
    modes.add_argument('-g', '--generate', dest='mode', action=SelectMode, const='generate',
                       help='Generate partition reassignment json file for all topics and given brokers')
    modes.add_argument('-v', '--verify', dest='mode', action=SelectMode, const='verify',
                       help='Verify partition reassignment json file')
    modes.add_argument('-e', '--execute', dest='mode', action=SelectMode, const='execute',
                       help=f'Execute partition reassignment. This saves a rollback configuration in {ROLLBACK_FILE}')
    modes.add_argument('-r', '--rollback', dest='mode', action=SelectMode, const='rollback',
                       help='Prepare for rollback. Backs up the current partition configuration and '
                            'replaces it with the rollback configuration. To execute the rollback '
                            'continue as if applying a new partition configuration')
    modes.add_argument('-l', '--leader-election', dest='mode', action=SelectMode, const='leader_election',
                       help='Run a preferred leader election. Required after the new partition '
                            'configuration has finished being applied')

    parser.add_argument('-b', '--brokers',
                        help='Comma delimited list of brokers to reassign partitions to. Required with -g')
    parser.add_argument('-z', '--zookeeper',
                        help='ZooKeeper host including port. Not required for rollback (-r)')
    parser.add_argument('--config', help='Optional YAML configuration file')
    parser.add_argument('--kafka-bin', help='Directory containing the Kafka admin scripts (default: auto-detect)')
    parser.add_argument('--work-dir', help=f'Directory for intermediate files (default: {DEFAULT_WORK_DIR})')
    parser.add_argument('--log-dir', help=f'Directory for log files (default: {DEFAULT_LOG_DIR})')
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Console log level (default: INFO)')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = KafkaConfig(args.config)
    except ConfigError as e:
        print(f"ERROR - {e}", file=sys.stderr)
        sys.exit(1)

    brokers = (args.brokers or '').strip()
    zookeeper = args.zookeeper or config.get('zookeeper_server')

    if args.mode == 'generate' and not brokers:
        parser.error("-b/--brokers is required with -g/--generate")
    if args.mode != 'rollback' and not zookeeper:
        parser.error("-z/--zookeeper is required for every mode except -r/--rollback")

    logger = setup_logging(args.log_dir or config.get('log_dir'), args.log_level)

    try:
        admin = None
        if args.mode != 'rollback':
            logger.info(f"ZK host set to {zookeeper}")
            kafka_bin = resolve_kafka_bin(args.kafka_bin or config.get('kafka_bin_path'), logger)
            admin = KafkaCLI(zookeeper, logger, kafka_bin, config.get('command_timeout'))

        workspace = Workspace(args.work_dir or config.get('work_dir'))
        workflow = ReassignmentWorkflow(admin, workspace, logger)
        success = workflow.run(args.mode, brokers)
        sys.exit(0 if success else 1)

    except KeyboardInterrupt:
        logger.warning("\nOperation interrupted by user")
        sys.exit(130)

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        logger.debug(traceback.format_exc())
        sys.exit(1)


if __name__ == "__main__":
    main()
