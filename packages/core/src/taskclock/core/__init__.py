"""TaskClock Core -- 任务生命周期状态机、区间历史存储与身份解析"""
