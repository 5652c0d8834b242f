# -*- coding: utf-8 -*-
"""
CLI接口模块
封装命令行交互逻辑和结果显示
"""

import shlex
import signal
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cli.system_manager import SystemManager
from dbsize.engine.cancellation import CancellationToken
from dbsize.units.size_parser import parse_size_string
from dbsize.units.size_pretty import size_pretty, size_pretty_numeric

NULL_DISPLAY = "NULL"


def parse_ref(text: str) -> Union[int, str]:
    """纯数字按 oid 处理，其余按名字处理"""
    if text.isdigit():
        return int(text)
    return text


@contextmanager
def cancel_on_interrupt(token: CancellationToken):
    """命令执行期间 Ctrl-C 只设置取消标记，由扫描循环在下一次检查时中止"""
    if threading.current_thread() is not threading.main_thread():
        yield token
        return
    previous = signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


class CLIInterface:
    """命令行接口类"""

    def __init__(self, system_manager: SystemManager, console: Optional[Console] = None):
        self.system_manager = system_manager
        self.console = console or Console()
        # 当前命令的取消标记
        self.cancel_token: Optional[CancellationToken] = None
        # 命令名 -> (处理函数, 最少参数个数, 最多参数个数)
        self.commands: Dict[str, Tuple[Callable[..., Any], int, int]] = {
            'pretty': (self._cmd_pretty, 1, 1),
            'pretty_numeric': (self._cmd_pretty_numeric, 1, 1),
            'bytes': (self._cmd_bytes, 1, 1),
            'database_size': (self._cmd_database_size, 1, 1),
            'tablespace_size': (self._cmd_tablespace_size, 1, 1),
            'relation_size': (self._cmd_relation_size, 1, 2),
            'table_size': (self._cmd_table_size, 1, 1),
            'indexes_size': (self._cmd_indexes_size, 1, 1),
            'total_size': (self._cmd_total_size, 1, 1),
            'filenode': (self._cmd_filenode, 1, 1),
            'filepath': (self._cmd_filepath, 1, 1),
            'filenode_relation': (self._cmd_filenode_relation, 2, 2),
            'use': (self._cmd_use, 1, 1),
            'role': (self._cmd_role, 1, 1),
        }

    @property
    def calculator(self):
        return self.system_manager.size_calculator

    def print_welcome(self):
        """打印欢迎信息"""
        self.console.print("欢迎使用 dbsize 对象大小查询工具！")
        self.console.print("输入 'quit' 退出，输入 'help' 查看帮助。")
        self.console.print("=" * 50)

    def print_help(self):
        """打印帮助信息"""
        table = Table(title="支持的命令")
        table.add_column("命令")
        table.add_column("说明")
        table.add_row("pretty <bytes>", "字节数 -> 可读字符串 (int64)")
        table.add_row("pretty_numeric <number>", "字节数 -> 可读字符串 (任意精度)")
        table.add_row("bytes <size>", "可读字符串 -> 字节数，例如 bytes '1.5 MB'")
        table.add_row("database_size <name|oid>", "数据库在所有表空间中的大小")
        table.add_row("tablespace_size <name|oid>", "表空间大小，目录不存在时为 NULL")
        table.add_row("relation_size <rel> [fork]", "关系某个分叉的大小 (main/fsm/vm/init)")
        table.add_row("table_size <rel>", "表 + toast，不含索引")
        table.add_row("indexes_size <rel>", "表上所有索引")
        table.add_row("total_size <rel>", "table_size + indexes_size")
        table.add_row("filenode <rel>", "关系的文件编号")
        table.add_row("filepath <rel>", "关系主分叉的相对路径")
        table.add_row("filenode_relation <spc> <filenode>", "由文件编号反查关系")
        table.add_row("use <database>", "切换当前数据库")
        table.add_row("role <role>", "切换当前角色")
        table.add_row("help / quit", "帮助 / 退出")
        self.console.print(table)

    def display_result(self, name: str, value: Any) -> None:
        table = Table()
        table.add_column(name)
        table.add_row(NULL_DISPLAY if value is None else str(value))
        self.console.print(table)

    # --- 命令实现 ---

    def _cmd_pretty(self, value: str):
        return size_pretty(int(value))

    def _cmd_pretty_numeric(self, value: str):
        return size_pretty_numeric(value)

    def _cmd_bytes(self, value: str):
        return parse_size_string(value)

    def _cmd_database_size(self, database: str):
        return self.calculator.database_size(parse_ref(database), self.cancel_token)

    def _cmd_tablespace_size(self, tablespace: str):
        return self.calculator.tablespace_size(parse_ref(tablespace), self.cancel_token)

    def _cmd_relation_size(self, rel: str, fork: str = 'main'):
        return self.calculator.relation_size(parse_ref(rel), fork, self.cancel_token)

    def _cmd_table_size(self, rel: str):
        return self.calculator.table_size(parse_ref(rel), self.cancel_token)

    def _cmd_indexes_size(self, rel: str):
        return self.calculator.indexes_size(parse_ref(rel), self.cancel_token)

    def _cmd_total_size(self, rel: str):
        return self.calculator.total_size(parse_ref(rel), self.cancel_token)

    def _cmd_filenode(self, rel: str):
        return self.calculator.relation_filenode(parse_ref(rel))

    def _cmd_filepath(self, rel: str):
        return self.calculator.relation_filepath(parse_ref(rel))

    def _cmd_filenode_relation(self, tablespace: str, filenode: str):
        return self.calculator.filenode_relation(int(tablespace), int(filenode))

    def _cmd_use(self, database: str):
        self.system_manager.use_database(database)
        return f"已切换到数据库 {database}"

    def _cmd_role(self, role: str):
        self.system_manager.set_role(role)
        return f"当前角色 {role}"

    # --- 主循环 ---

    def process_command(self, line: str) -> Any:
        """
        执行一行命令并显示结果，返回结果值。
        出错时打印错误信息并返回 None。
        """
        try:
            tokens: List[str] = shlex.split(line)
        except ValueError as e:
            self.console.print(f"[red]ERROR:[/red] {escape(str(e))}")
            return None
        if not tokens:
            return None

        name, args = tokens[0].lower(), tokens[1:]
        if name == 'help':
            self.print_help()
            return None
        if name not in self.commands:
            self.console.print(f"[red]ERROR:[/red] 未知命令 '{name}'，输入 help 查看帮助。")
            return None

        handler, min_args, max_args = self.commands[name]
        if not min_args <= len(args) <= max_args:
            self.console.print(f"[red]ERROR:[/red] 命令 {name} 需要 {min_args}~{max_args} 个参数")
            return None

        self.cancel_token = CancellationToken()
        try:
            with cancel_on_interrupt(self.cancel_token):
                result = handler(*args)
        except KeyboardInterrupt:
            self.console.print("[red]ERROR:[/red] canceling statement due to user request", highlight=False)
            return None
        except Exception as e:
            logger.debug(f"[CLIInterface] 命令失败: {line!r}: {e!r}")
            self.console.print(f"[red]ERROR:[/red] {escape(str(e))}", highlight=False)
            return None
        finally:
            self.cancel_token = None

        self.display_result(name, result)
        return result

    def run_script(self, content: str) -> None:
        """非交互模式：逐行执行，忽略空行与 # 注释"""
        for line in content.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith('#'):
                continue
            self.process_command(stripped)

    def run(self):
        """交互式主循环"""
        self.print_welcome()
        while True:
            try:
                line = self.console.input("dbsize> ")
            except (EOFError, KeyboardInterrupt):
                self.console.print("\n再见！")
                break
            if line.strip().lower() in ('quit', 'exit', 'q'):
                self.console.print("再见！")
                break
            self.process_command(line)
