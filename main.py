import argparse
import logging

from factorysim.metrics.collector import MetricsCollector
from factorysim.metrics.csv_recorder import CsvRecorder, output_dir_for
from factorysim.metrics.recorder import FanOutRecorder
from factorysim.simulator.simulation_engine import SimulationEngine
from utils.config_iterator import load_config, output_config, parameters_iterator

if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Run the factory breakdown simulation")
    parser.add_argument("--config", default="./configs/config.yaml", help="Path to the yaml config")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    base_dir, output_level = output_config(config)

    # Each replication gets its own engine, state and random source
    for parameters in parameters_iterator(config):
        collector = MetricsCollector()
        with CsvRecorder(output_dir_for(base_dir, parameters), output_level=output_level,
                         program="main.py") as csv_recorder:
            engine = SimulationEngine(parameters, recorder=FanOutRecorder(csv_recorder, collector))
            engine.run()
        collector.print_summary()
