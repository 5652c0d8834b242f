# main.py

import argparse
import sys

from loguru import logger

from cli.system_manager import SystemManager
from cli.cli_interface import CLIInterface
from dbsize.config import load_config


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def main(argv=None):
    """主函数，启动对象大小查询的交互式命令行。"""
    parser = argparse.ArgumentParser(prog="dbsize", description="Database object size inquiries")
    parser.add_argument("-c", "--config", default="dbsize.yaml", help="YAML configuration file")
    parser.add_argument("-D", "--data-dir", help="data directory (overrides the configuration)")
    parser.add_argument("-e", "--execute", action="append", default=[],
                        help="run one command and exit (may be repeated)")
    args = parser.parse_args(argv)

    system_manager = None
    try:
        config = load_config(args.config)
        if args.data_dir:
            config.data_dir = args.data_dir
        configure_logging(config.log_level)

        # 1. 初始化系统总管理器
        system_manager = SystemManager(config)

        # 2. 创建 CLI 接口，只向它传递总管理器
        cli = CLIInterface(system_manager=system_manager)

        # 3. 命令行给出的命令 / 重定向输入 / 交互模式
        if args.execute:
            for command in args.execute:
                cli.process_command(command)
        elif not sys.stdin.isatty():
            cli.run_script(sys.stdin.read())
        else:
            cli.run()
    except KeyboardInterrupt:
        print("\n已取消。", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"❌ 系统启动或运行时发生致命错误: {str(e)}", file=sys.stderr)
        return 1
    finally:
        # 确保系统在退出时能正确关闭
        if system_manager:
            system_manager.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
