"""
触发层（Triggers）

HTTP 入口把收到的 CloudEvent 交给 TriggerService，由它统一完成：
事件类型筛选、幂等、创建任务、启动后台处理、写入 TaskStore。
"""
