import json
import logging

import pytest

from kafka_partition_reassignment import (
    KafkaToolError, ReassignmentAdmin, ToolResult, Workspace, extract_rollback_plan,
)


def plan_mapping(plan):
    """{(topic, partition): replicas} for a plan given as dict or JSON text."""
    if isinstance(plan, str):
        plan = json.loads(plan)
    return {(p['topic'], p['partition']): p['replicas'] for p in plan['partitions']}


class FakeCluster(ReassignmentAdmin):
    """In-memory stand-in for the Kafka admin scripts.

    Each verify call completes one in-flight partition, so successive
    verifies report progress.
    """

    def __init__(self, topics, brokers, replication_factor=2):
        self.assignment = {}
        for topic, count in topics.items():
            for partition in range(count):
                self.assignment[(topic, partition)] = [
                    brokers[(partition + i) % len(brokers)] for i in range(replication_factor)
                ]
        self.in_flight = []
        self.calls = []
        self.submitted = []
        self.listing_error = None
        self.refuse_execute = False

    def list_topics(self):
        self.calls.append('list_topics')
        if self.listing_error:
            raise self.listing_error
        topics = []
        for topic, _ in self.assignment:
            if topic not in topics:
                topics.append(topic)
        return topics

    def generate_plan(self, topics_file, brokers):
        self.calls.append('generate_plan')
        with open(topics_file) as f:
            topics = [t['topic'] for t in json.load(f)['topics']]
        broker_ids = [int(b) for b in brokers.split(',')]

        partitions = []
        for (topic, partition), replicas in self.assignment.items():
            if topic not in topics:
                continue
            partitions.append({
                'topic': topic,
                'partition': partition,
                'replicas': [broker_ids[(partition + i) % len(broker_ids)] for i in range(len(replicas))],
            })
        return json.dumps({'version': 1, 'partitions': partitions}) + "\n"

    def verify_plan(self, plan_file):
        self.calls.append('verify_plan')
        with open(plan_file) as f:
            plan = plan_mapping(f.read())

        lines = ["Status of partition reassignment:"]
        for (topic, partition), replicas in plan.items():
            if (topic, partition) in self.in_flight:
                lines.append(f"Reassignment of partition {topic}-{partition} is still in progress")
            elif self.assignment.get((topic, partition)) == replicas:
                lines.append(f"Reassignment of partition {topic}-{partition} completed successfully")
            else:
                lines.append(f"Reassignment of partition {topic}-{partition} failed")
        if self.in_flight:
            self.in_flight.pop(0)
        return ToolResult(0, "\n".join(lines) + "\n")

    def execute_plan(self, plan_file):
        self.calls.append('execute_plan')
        if self.refuse_execute:
            return ToolResult(0, "There is an existing assignment running.\n"), None

        with open(plan_file) as f:
            plan = plan_mapping(f.read())
        self.submitted.append(plan)

        current = {'version': 1, 'partitions': [
            {'topic': topic, 'partition': partition, 'replicas': self.assignment[(topic, partition)]}
            for (topic, partition) in plan
        ]}
        output = (
            "Current partition replica assignment\n\n"
            + json.dumps(current)
            + "\n\nSave this to use as the --reassignment-json-file option during rollback\n"
            + "Successfully started reassignment of partitions.\n"
        )
        self.assignment.update(plan)
        self.in_flight = list(plan)
        return ToolResult(0, output), extract_rollback_plan(output)

    def elect_leaders(self):
        self.calls.append('elect_leaders')
        return ToolResult(0, "Successfully started preferred replica election for partitions\n")


@pytest.fixture
def logger():
    return logging.getLogger("test_reassignment")


@pytest.fixture
def workspace(tmp_path):
    return Workspace(str(tmp_path / "kafka"))


@pytest.fixture
def cluster():
    return FakeCluster({'orders': 3, 'payments': 2}, brokers=[1, 2])


@pytest.fixture
def listing_failure():
    return KafkaToolError(['kafka-topics.sh', '--list'], 1, '', 'Connection refused\n')
