"""
udpstats: send metrics to a StatsD daemon from the command line

Copyright (c) 2026 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
import argparse
import logging
import os
import sys

from udpstats import config, logutil, version
from udpstats.client import Client
from udpstats.errors import Error, InvalidMetricValueError, SamplingRateError

METRIC_KINDS = ["count", "timing", "gauge", "set"]


def parse_value(text):
    try:
        return float(text)
    except ValueError as ex:
        raise InvalidMetricValueError("Metric value {!r} is not a number".format(text)) from ex


def parse_tag(text):
    name, sep, value = text.partition("=")
    if not name:
        raise argparse.ArgumentTypeError("tag must be given as name=value, got {!r}".format(text))
    return name, value if sep else None


class StatsSender:
    def __init__(self):
        self.log = logging.getLogger(self.__class__.__name__)
        self.config = None

    def set_config(self, config_file, args):
        if config_file:
            self.config = config.read_json_config_file(config_file)
        else:
            self.config = config.StatsdConfig()
        overrides = {}
        if args.host is not None:
            overrides["host"] = args.host
        if args.port is not None:
            overrides["port"] = args.port
        if args.format is not None:
            overrides["format"] = args.format
        if args.tag:
            overrides["tags"] = {**self.config.tags, **dict(args.tag)}
        if args.stdin:
            overrides["buffered"] = True
        if overrides:
            self.config = config.validate_config({**self.config.model_dump(), **overrides})

    def send_metric(self, client: Client, kind, key, value, sample_rate=1.0):
        if kind != "count" and sample_rate != 1:
            raise SamplingRateError("--sample-rate only applies to count metrics, got {!r}".format(kind))
        if kind == "count":
            client.count(key, parse_value(value), sample_rate)
        elif kind == "timing":
            client.timing(key, parse_value(value))
        elif kind == "gauge":
            client.gauge(key, parse_value(value))
        elif kind == "set":
            client.set(key, value)
        else:
            raise InvalidMetricValueError("Unknown metric type {!r}, expected one of {}".format(kind, METRIC_KINDS))

    def send_lines(self, client: Client, lines, sample_rate=1.0):
        sent = 0
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split(None, 2)
            if len(parts) != 3:
                raise InvalidMetricValueError("Expected 'type key value', got {!r}".format(line))
            self.send_metric(client, *parts, sample_rate=sample_rate)
            sent += 1
        return sent

    def run(self, args=None):
        parser = argparse.ArgumentParser()
        parser.add_argument("--version", action="version", help="show program version", version=version.__version__)
        parser.add_argument("--config", help="udpstats config file", default=os.environ.get("UDPSTATS_CONFIG"))
        parser.add_argument("--host", help="statsd host, overrides config file")
        parser.add_argument("--port", type=int, help="statsd port, overrides config file")
        parser.add_argument("--format", choices=["plain", "telegraf", "datadog"], help="tag format")
        parser.add_argument("--tag", type=parse_tag, action="append", help="name=value tag, can be repeated")
        parser.add_argument("--sample-rate", type=float, default=1.0, help="sampling rate for counters")
        parser.add_argument(
            "--stdin",
            help="read 'type key value' lines from stdin and send them in batches",
            default=False,
            action="store_true"
        )
        parser.add_argument("kind", nargs="?", choices=METRIC_KINDS, help="metric type")
        parser.add_argument("key", nargs="?", help="metric name")
        parser.add_argument("value", nargs="?", help="metric value")
        args = parser.parse_args(args)

        if not args.stdin and (args.kind is None or args.key is None or args.value is None):
            print("udpstats_send: type, key and value must be given unless --stdin is used")
            return 1

        self.set_config(args.config, args)
        with config.create_client(self.config) as client:
            if args.stdin:
                sent = self.send_lines(client, sys.stdin, args.sample_rate)
                self.log.info("Sent %d metrics to %s:%s", sent, self.config.host, self.config.port)
            else:
                self.send_metric(client, args.kind, args.key, args.value, args.sample_rate)
        return 0


def main():
    logutil.configure_logging(level=logging.INFO, short_log=True)
    tool = StatsSender()
    try:
        return tool.run()
    except KeyboardInterrupt:
        print("*** interrupted by keyboard ***")
        return 1
    except Error as ex:
        tool.log.error("FATAL: %s: %s", ex.__class__.__name__, ex)
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
