from common.workers.launcher import OperatorLauncher

if __name__ == "__main__":
    OperatorLauncher().run()
